# booking_app/services/cards/translations.py
"""
Localized customer-facing texts.

Every key has an English entry; lookups for a language or key that is
missing fall back to English, and a key missing entirely falls back to the
generic error text.
"""
import logging
from typing import Dict, List

from booking_app.schemas.language import Language, normalize_language, DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)

EN, RU, ES, PT, HE = Language.EN, Language.RU, Language.ES, Language.PT, Language.HE

# Complete catalogue every lookup falls back to
FALLBACK_LANGUAGE = EN

MESSAGES: Dict[str, Dict[Language, str]] = {
    # Slot selection card
    "SLOT_CARD_TITLE": {
        EN: "Available times 📅",
        RU: "Свободное время 📅",
        ES: "Horarios disponibles 📅",
        PT: "Horários disponíveis 📅",
        HE: "זמנים פנויים 📅",
    },
    "SLOT_CARD_BODY": {
        EN: "Choose a time that suits you:",
        RU: "Выберите удобное время:",
        ES: "Elige el horario que te convenga:",
        PT: "Escolha o horário que preferir:",
        HE: "בחרו את הזמן שנוח לכם:",
    },
    "CARD_FOOTER": {
        EN: "Tap an option to continue",
        RU: "Нажмите на вариант, чтобы продолжить",
        ES: "Toca una opción para continuar",
        PT: "Toque numa opção para continuar",
        HE: "הקישו על אפשרות כדי להמשיך",
    },
    "SERVICE_CARD_TITLE": {
        EN: "Which service would you like? ✂️",
        RU: "Какую услугу вы хотите? ✂️",
        ES: "¿Qué servicio deseas? ✂️",
        PT: "Qual serviço você deseja? ✂️",
        HE: "איזה שירות תרצו? ✂️",
    },

    # Confirmation
    "CONFIRM_TITLE": {
        EN: "Confirm your booking",
        RU: "Подтвердите запись",
        ES: "Confirma tu reserva",
        PT: "Confirme sua reserva",
        HE: "אשרו את ההזמנה",
    },
    "CONFIRM_BODY": {
        EN: "{date} at {time} with {staff}. Shall I book it?",
        RU: "{date} в {time}, мастер {staff}. Записать вас?",
        ES: "{date} a las {time} con {staff}. ¿Lo reservo?",
        PT: "{date} às {time} com {staff}. Posso reservar?",
        HE: "{date} בשעה {time} עם {staff}. לקבוע?",
    },
    "CONFIRM_BUTTON": {
        EN: "✅ Confirm",
        RU: "✅ Подтвердить",
        ES: "✅ Confirmar",
        PT: "✅ Confirmar",
        HE: "✅ אישור",
    },
    "CHANGE_BUTTON": {
        EN: "🔄 Change time",
        RU: "🔄 Другое время",
        ES: "🔄 Cambiar hora",
        PT: "🔄 Mudar horário",
        HE: "🔄 שינוי שעה",
    },
    "CANCEL_BUTTON": {
        EN: "✖️ Cancel",
        RU: "✖️ Отмена",
        ES: "✖️ Cancelar",
        PT: "✖️ Cancelar",
        HE: "✖️ ביטול",
    },
    "BOOKING_CONFIRMED": {
        EN: "Your booking is confirmed ✅\n{date} at {time} with {staff}\nBooking code: {code}",
        RU: "Вы записаны ✅\n{date} в {time}, мастер {staff}\nКод бронирования: {code}",
        ES: "Tu reserva está confirmada ✅\n{date} a las {time} con {staff}\nCódigo de reserva: {code}",
        PT: "Sua reserva está confirmada ✅\n{date} às {time} com {staff}\nCódigo de reserva: {code}",
        HE: "ההזמנה אושרה ✅\n{date} בשעה {time} עם {staff}\nקוד הזמנה: {code}",
    },

    # Alternatives
    "SLOT_TAKEN": {
        EN: "Unfortunately, {time} on {date} is already booked 😔\nHere are the closest options:",
        RU: "К сожалению, {date} в {time} уже занято 😔\nВот ближайшие варианты:",
        ES: "Desafortunadamente, {time} el {date} ya está reservado 😔\nEstas son las opciones más cercanas:",
        PT: "Infelizmente, {time} em {date} já está reservado 😔\nEstas são as opções mais próximas:",
        HE: "למרבה הצער, {time} ב-{date} כבר תפוס 😔\nהנה האפשרויות הקרובות:",
    },
    "SAME_DAY_OPTIONS": {
        EN: "Here are free slots on {date} near {time}:",
        RU: "Свободное время {date} рядом с {time}:",
        ES: "Horarios libres el {date} cerca de {time}:",
        PT: "Horários livres em {date} perto de {time}:",
        HE: "משבצות פנויות ב-{date} ליד {time}:",
    },
    "OTHER_DAY_OPTIONS": {
        EN: "{date} is fully booked. Here are the nearest days:",
        RU: "{date} всё занято. Вот ближайшие дни:",
        ES: "{date} está completo. Estos son los días más cercanos:",
        PT: "{date} está lotado. Estes são os dias mais próximos:",
        HE: "{date} תפוס לגמרי. הנה הימים הקרובים:",
    },
    "OUT_OF_HOURS": {
        EN: "{time} is outside working hours ⏰\nHere are the closest available times:",
        RU: "{time} вне рабочего времени ⏰\nВот ближайшее свободное время:",
        ES: "{time} está fuera del horario de atención ⏰\nEstos son los horarios más cercanos:",
        PT: "{time} está fora do horário de funcionamento ⏰\nEstes são os horários mais próximos:",
        HE: "{time} מחוץ לשעות הפעילות ⏰\nהנה הזמנים הפנויים הקרובים:",
    },
    "DURATION_EXCEEDS_WINDOW": {
        EN: "A visit starting at {time} would run past closing time ⏰\nHere are times that fit:",
        RU: "Визит в {time} не успеет закончиться до закрытия ⏰\nВот подходящее время:",
        ES: "Una cita a las {time} terminaría después del cierre ⏰\nEstos horarios sí encajan:",
        PT: "Um atendimento às {time} terminaria após o fechamento ⏰\nEstes horários funcionam:",
    },
    "STAFF_UNAVAILABLE": {
        EN: "{staff} is not available on {date} 🙏\nHere are other options:",
        RU: "{staff} не работает {date} 🙏\nВот другие варианты:",
        ES: "{staff} no está disponible el {date} 🙏\nEstas son otras opciones:",
        PT: "{staff} não está disponível em {date} 🙏\nEstas são outras opções:",
    },

    # Errors and plain replies
    "NO_ALTERNATIVES": {
        EN: "Unfortunately, I couldn't find free times in the coming days 😔\nPlease try another date or contact us directly 📞",
        RU: "К сожалению, в ближайшие дни свободного времени нет 😔\nПопробуйте другую дату или свяжитесь с нами 📞",
        ES: "Desafortunadamente, no encontré horarios libres en los próximos días 😔\nPrueba otra fecha o contáctanos directamente 📞",
        PT: "Infelizmente, não encontrei horários livres nos próximos dias 😔\nTente outra data ou fale conosco diretamente 📞",
        HE: "למרבה הצער, לא מצאתי זמנים פנויים בימים הקרובים 😔\nנסו תאריך אחר או צרו קשר ישירות 📞",
    },
    "SESSION_EXPIRED": {
        EN: "Your session has expired ⏰\nPlease start over by typing the service and time you want.",
        RU: "Ваша сессия истекла ⏰\nПожалуйста, начните заново: напишите услугу и желаемое время.",
        ES: "Tu sesión ha expirado ⏰\nPor favor, empieza de nuevo escribiendo el servicio y la hora.",
        PT: "Sua sessão expirou ⏰\nPor favor, comece de novo digitando o serviço e o horário.",
        HE: "הסשן פג תוקף ⏰\nאנא התחילו מחדש וכתבו את השירות והשעה הרצויים.",
    },
    "VALIDATION": {
        EN: "Sorry, I couldn't understand the date or time 🤔\nTry something like \"haircut tomorrow at 15:00\".",
        RU: "Извините, не понял дату или время 🤔\nНапишите, например: \"стрижка завтра в 15:00\".",
        ES: "Lo siento, no entendí la fecha u hora 🤔\nPrueba algo como \"corte mañana a las 15:00\".",
        PT: "Desculpe, não entendi a data ou hora 🤔\nTente algo como \"corte amanhã às 15:00\".",
    },
    "SERVICE_NOT_FOUND": {
        EN: "I couldn't find that service. Please pick one from the list:",
        RU: "Не нашёл такую услугу. Выберите из списка:",
        ES: "No encontré ese servicio. Elige uno de la lista:",
        PT: "Não encontrei esse serviço. Escolha um da lista:",
    },
    "ERROR": {
        EN: "Something went wrong while processing your request 🙏\nPlease try again in a moment.",
        RU: "Произошла ошибка при обработке запроса 🙏\nПожалуйста, попробуйте ещё раз.",
        ES: "Se produjo un error al procesar tu solicitud 🙏\nPor favor, inténtalo de nuevo.",
        PT: "Ocorreu um erro ao processar sua solicitação 🙏\nPor favor, tente novamente.",
        HE: "אירעה שגיאה בעיבוד הבקשה 🙏\nאנא נסו שוב בעוד רגע.",
    },
    "CONVERSATIONAL": {
        EN: "Hi! 👋 I can book an appointment for you. Tell me the service and when, e.g. \"haircut tomorrow at 15:00\".",
        RU: "Здравствуйте! 👋 Я помогу записаться. Напишите услугу и время, например: \"стрижка завтра в 15:00\".",
        ES: "¡Hola! 👋 Puedo reservarte una cita. Dime el servicio y cuándo, por ejemplo \"corte mañana a las 15:00\".",
        PT: "Olá! 👋 Posso marcar um horário para você. Diga o serviço e quando, por exemplo \"corte amanhã às 15:00\".",
        HE: "שלום! 👋 אשמח לקבוע לכם תור. כתבו את השירות והזמן, למשל \"תספורת מחר ב-15:00\".",
    },
    "CANCEL_INFO": {
        EN: "To cancel an existing booking, please reply with your booking code or contact us directly.",
        RU: "Чтобы отменить запись, пришлите код бронирования или свяжитесь с нами.",
        ES: "Para cancelar una reserva, envía tu código de reserva o contáctanos directamente.",
        PT: "Para cancelar uma reserva, envie seu código de reserva ou fale conosco diretamente.",
    },
    "MODIFY_INFO": {
        EN: "To move an existing booking, please reply with your booking code or contact us directly.",
        RU: "Чтобы перенести запись, пришлите код бронирования или свяжитесь с нами.",
        ES: "Para cambiar una reserva, envía tu código de reserva o contáctanos directamente.",
        PT: "Para alterar uma reserva, envie seu código de reserva ou fale conosco diretamente.",
    },
    "SELECTION_CANCELLED": {
        EN: "Okay, I've cancelled this selection. Write to me any time to book again.",
        RU: "Хорошо, выбор отменён. Напишите в любое время, чтобы записаться снова.",
        ES: "De acuerdo, he cancelado esta selección. Escríbeme cuando quieras reservar.",
        PT: "Certo, cancelei esta seleção. Escreva quando quiser reservar.",
    },

    # Proximity labels for alternatives
    "PROXIMITY_EXACT": {
        EN: "requested time",
        RU: "запрошенное время",
        ES: "hora solicitada",
        PT: "horário pedido",
        HE: "השעה המבוקשת",
    },
    "PROXIMITY_LATER": {
        EN: "{minutes} min later",
        RU: "на {minutes} мин позже",
        ES: "{minutes} min después",
        PT: "{minutes} min depois",
        HE: "{minutes} דק' מאוחר יותר",
    },
    "PROXIMITY_EARLIER": {
        EN: "{minutes} min earlier",
        RU: "на {minutes} мин раньше",
        ES: "{minutes} min antes",
        PT: "{minutes} min antes",
        HE: "{minutes} דק' מוקדם יותר",
    },
    "PROXIMITY_SAME_DAY": {
        EN: "same day",
        RU: "в тот же день",
        ES: "mismo día",
        PT: "mesmo dia",
        HE: "באותו יום",
    },
    "PROXIMITY_DAYS_LATER": {
        EN: "+{days} day(s)",
        RU: "+{days} дн.",
        ES: "+{days} día(s)",
        PT: "+{days} dia(s)",
        HE: "+{days} ימים",
    },
    "PROXIMITY_DAYS_EARLIER": {
        EN: "-{days} day(s)",
        RU: "-{days} дн.",
        ES: "-{days} día(s)",
        PT: "-{days} dia(s)",
        HE: "-{days} ימים",
    },
}

WEEKDAY_NAMES: Dict[Language, List[str]] = {
    EN: ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
    RU: ["Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"],
    ES: ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"],
    PT: ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"],
    HE: ["יום ב׳", "יום ג׳", "יום ד׳", "יום ה׳", "יום ו׳", "שבת", "יום א׳"],
}


class _Blank(dict):
    """format_map helper that leaves missing placeholders empty"""

    def __missing__(self, key):
        return ""


def get_text(key: str, language=DEFAULT_LANGUAGE, **params) -> str:
    """Localized text for `key`; never raises on an unknown language or key"""
    lang = normalize_language(language)
    entry = MESSAGES.get(key)
    if entry is None:
        logger.error(f"Message template not found for key: {key}")
        entry = MESSAGES["ERROR"]

    template = entry.get(lang) or entry[FALLBACK_LANGUAGE]
    try:
        return template.format_map(_Blank(params))
    except (IndexError, ValueError) as e:
        logger.error(f"Bad template for message {key}/{lang.value}: {e}")
        return entry[FALLBACK_LANGUAGE].format_map(_Blank(params))


def format_day(day, language=DEFAULT_LANGUAGE) -> str:
    """Short localized day label, e.g. 'Wed 06.11'"""
    lang = normalize_language(language)
    names = WEEKDAY_NAMES.get(lang) or WEEKDAY_NAMES[FALLBACK_LANGUAGE]
    return f"{names[day.weekday()]} {day.strftime('%d.%m')}"


def format_clock(value) -> str:
    return value.strftime("%H:%M")

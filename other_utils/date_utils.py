from datetime import datetime, date, time


def parse_iso_date(fecha: str | date) -> date:
    """
    Convierte la fecha de un sorteo, tal y como la envía el servidor, en un objeto date.
    :param fecha: en formato str AAAA-MM-DD (o un date, que se devuelve tal cual)
    :return: fecha en formato datetime.date
    :raises ValueError: si la cadena no es una fecha ISO válida
    """
    if isinstance(fecha, datetime):
        return fecha.date()
    if isinstance(fecha, date):
        return fecha
    if not isinstance(fecha, str):
        raise ValueError(f"expected an ISO date string, got {type(fecha).__name__}")
    try:
        return datetime.strptime(fecha.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"invalid ISO date {fecha!r}, expected YYYY-MM-DD") from None


def end_of_day(moment: date | datetime) -> datetime:
    """Último instante del día natural de `moment` (23:59:59.999999)."""
    if isinstance(moment, datetime):
        moment = moment.date()
    return datetime.combine(moment, time.max)


def is_on_or_before(draw_date: date, as_of: date | datetime) -> bool:
    # Los sorteos no llevan hora: comparar contra el final del día incluye los del mismo día
    return datetime.combine(draw_date, time.min) <= end_of_day(as_of)

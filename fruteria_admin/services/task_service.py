# ==============================================================================
# MOTOR DE TAREAS RECURRENTES (calendario operativo)
# ==============================================================================
# Funciones puras sobre (lista de tareas, fecha):
#
# - unico:     aparece solo en su fecha; completada si status == 'realizada'
# - constante: aparece cada mes el mismo día que su fecha ancla, desde la
#              fecha ancla en adelante; completada por fecha (completedDates)
#
# REGLA: toda comparación de fechas pasa por normalize_date(). Comparar
# "2025-1-5" con "2025-01-05" sin normalizar es un error.
# Fechas inválidas no coinciden con ningún día (nunca lanzan excepción).
# ==============================================================================

import calendar
import re
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from fruteria_admin.models import TaskFrequency, TaskStatus

_DATE_PARTS = re.compile(r'^(\d{4})-(\d{1,2})(?:-(\d{1,2}))?$')


def normalize_date(raw: Any) -> Any:
    """
    Normaliza una fecha a YYYY-MM-DD (o YYYY-MM si no tiene día).

    Rellena mes y día con ceros; descarta la parte de hora ("T..." o " ...").
    Si no se puede interpretar, retorna la entrada sin cambios.

    Ejemplos:
        normalize_date("2025-3-5")   -> "2025-03-05"
        normalize_date("2025-3")     -> "2025-03"
        normalize_date("mañana")     -> "mañana"
    """
    if not isinstance(raw, str):
        return raw
    text = raw.strip().split('T', 1)[0].split(' ', 1)[0]
    match = _DATE_PARTS.match(text)
    if not match:
        return raw
    year, month, day = match.groups()
    if day is None:
        return f'{year}-{int(month):02d}'
    return f'{year}-{int(month):02d}-{int(day):02d}'


def _full_date(raw: Any) -> Optional[str]:
    """Fecha normalizada completa (YYYY-MM-DD) o None."""
    normalized = normalize_date(raw)
    if isinstance(normalized, str) and len(normalized) == 10 and _DATE_PARTS.match(normalized):
        return normalized
    return None


def is_recurring(task: Dict[str, Any]) -> bool:
    return task.get('frequency') == TaskFrequency.CONSTANTE.value


def occurs_on(task: Dict[str, Any], date_str: str) -> bool:
    """
    Indica si la tarea aplica al día dado.

    Args:
        task: Tarea operativa
        date_str: Fecha a evaluar

    Returns:
        True si es una tarea única de esa fecha, o una constante del mismo
        día del mes y no anterior a su fecha ancla
    """
    target = _full_date(date_str)
    anchor = _full_date(task.get('date'))
    if target is None or anchor is None:
        return False
    if is_recurring(task):
        return anchor[8:] == target[8:] and target >= anchor
    return anchor == target


def tasks_for_date(tasks: Optional[Iterable[Dict[str, Any]]], date_str: str) -> List[Dict[str, Any]]:
    """Tareas que aplican a una fecha, en el orden de la lista."""
    return [task for task in (tasks or []) if occurs_on(task, date_str)]


def is_completed_on(task: Dict[str, Any], date_str: str) -> bool:
    """
    Estado de la instancia de la tarea en esa fecha.

    Para tareas únicas la fecha no importa: se usa `status`.
    """
    if is_recurring(task):
        target = normalize_date(date_str)
        return any(normalize_date(d) == target for d in task.get('completedDates') or [])
    return task.get('status') == TaskStatus.REALIZADA.value


def toggle_completion(task: Dict[str, Any], date_str: str) -> Dict[str, Any]:
    """
    Alterna pendiente <-> completada.

    - constante: agrega o quita la fecha de completedDates
    - unico: alterna status entre 'pendiente' y 'realizada' (la fecha se ignora)

    Returns:
        Copia actualizada de la tarea (la original no se modifica)
    """
    updated = dict(task)
    if is_recurring(task):
        target = normalize_date(date_str)
        completed = [d for d in task.get('completedDates') or [] if normalize_date(d) != target]
        if len(completed) == len(task.get('completedDates') or []):
            completed.append(target)
        updated['completedDates'] = completed
    else:
        done = task.get('status') == TaskStatus.REALIZADA.value
        updated['status'] = TaskStatus.PENDIENTE.value if done else TaskStatus.REALIZADA.value
    return updated


# ==============================================================================
# AGREGACIÓN MENSUAL
# ==============================================================================

def month_days(year: int, month: int) -> List[str]:
    """Todas las fechas del mes (YYYY-MM-DD), respetando años bisiestos."""
    _, last_day = calendar.monthrange(year, month)
    return [date(year, month, day).isoformat() for day in range(1, last_day + 1)]


def calendar_month(
    tasks: Optional[Iterable[Dict[str, Any]]],
    year: int,
    month: int
) -> List[Tuple[str, List[Dict[str, Any]]]]:
    """
    Agregación por día para la grilla del calendario.

    Returns:
        Lista [(fecha, tareas_del_día), ...] con todos los días del mes
    """
    task_list = list(tasks or [])
    return [(day, tasks_for_date(task_list, day)) for day in month_days(year, month)]


def pending_for_month(
    tasks: Optional[Iterable[Dict[str, Any]]],
    year: int,
    month: int
) -> List[Tuple[Dict[str, Any], str]]:
    """
    Instancias pendientes del mes, en orden cronológico.

    Returns:
        Lista plana [(tarea, fecha), ...] sin las instancias ya completadas
    """
    pending = []
    for day, day_tasks in calendar_month(tasks, year, month):
        for task in day_tasks:
            if not is_completed_on(task, day):
                pending.append((task, day))
    return pending

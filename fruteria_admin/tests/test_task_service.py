# -*- coding: utf-8 -*-
"""
Tests del motor de tareas recurrentes (calendario operativo).
"""
import pytest

from fruteria_admin.services import task_service as ts


def make_task(task_id, date, frequency='unico', **extra):
    return {'id': task_id, 'date': date, 'frequency': frequency,
            'status': 'pendiente', 'completedDates': [], **extra}


# ==============================================================================
# NORMALIZACIÓN DE FECHAS
# ==============================================================================

@pytest.mark.parametrize('raw, expected', [
    ('2025-3-5', '2025-03-05'),
    ('2025-03-05', '2025-03-05'),
    ('2025-03-05T10:30:00Z', '2025-03-05'),
    ('2025-3-5 08:00', '2025-03-05'),
    ('2025-3', '2025-03'),
    ('mañana', 'mañana'),
    ('', ''),
])
def test_normalize_date(raw, expected):
    assert ts.normalize_date(raw) == expected


def test_normalize_date_is_idempotent():
    for raw in ('2025-1-9', '2024-12', '2025-02-28T00:00', 'basura'):
        once = ts.normalize_date(raw)
        assert ts.normalize_date(once) == once


def test_normalize_date_passes_non_strings_through():
    assert ts.normalize_date(None) is None


# ==============================================================================
# QUÉ TAREAS APLICAN A UN DÍA
# ==============================================================================

def test_single_task_matches_only_its_date():
    task = make_task('t1', '2025-3-5')
    assert ts.occurs_on(task, '2025-03-05')
    assert ts.occurs_on(task, '2025-3-5')
    assert not ts.occurs_on(task, '2025-04-05')


def test_task_without_frequency_is_single():
    task = {'id': 't1', 'date': '2025-01-15'}
    assert ts.occurs_on(task, '2025-01-15')
    assert not ts.occurs_on(task, '2025-02-15')


def test_constant_task_repeats_monthly_from_anchor():
    task = make_task('t1', '2025-01-15', 'constante')
    assert ts.occurs_on(task, '2025-01-15')
    assert ts.occurs_on(task, '2025-02-15')
    assert ts.occurs_on(task, '2026-07-15')
    assert not ts.occurs_on(task, '2024-12-15')
    assert not ts.occurs_on(task, '2025-02-14')


def test_constant_task_on_31st_skips_short_months():
    task = make_task('t1', '2025-01-31', 'constante')
    february = ts.calendar_month([task], 2025, 2)
    april = ts.calendar_month([task], 2025, 4)
    assert all(not tasks for _, tasks in february)
    assert all(not tasks for _, tasks in april)
    assert ts.tasks_for_date([task], '2025-03-31') == [task]


def test_malformed_dates_match_nothing():
    tasks = [make_task('t1', 'sin fecha', 'constante'), make_task('t2', '2025-01-01')]
    assert ts.tasks_for_date(tasks, 'ayer') == []
    assert ts.tasks_for_date(tasks, '2025-01-01') == [tasks[1]]


def test_tasks_for_date_accepts_missing_list():
    assert ts.tasks_for_date(None, '2025-01-01') == []


# ==============================================================================
# COMPLETAR / DESMARCAR
# ==============================================================================

def test_toggle_constant_task_twice_restores_state():
    task = make_task('t1', '2025-01-10', 'constante')
    once = ts.toggle_completion(task, '2025-2-10')
    assert once['completedDates'] == ['2025-02-10']
    assert ts.is_completed_on(once, '2025-02-10')
    assert not ts.is_completed_on(once, '2025-03-10')
    # La tarea original no se modifica
    assert task['completedDates'] == []

    twice = ts.toggle_completion(once, '2025-02-10')
    assert twice['completedDates'] == []
    assert not ts.is_completed_on(twice, '2025-02-10')


def test_toggle_single_task_flips_status():
    task = make_task('t1', '2025-01-10')
    done = ts.toggle_completion(task, 'cualquier-fecha')
    assert done['status'] == 'realizada'
    assert ts.is_completed_on(done, '2025-01-10')
    assert ts.toggle_completion(done, '2025-01-10')['status'] == 'pendiente'


def test_completed_dates_compare_normalized():
    task = make_task('t1', '2025-01-05', 'constante', completedDates=['2025-2-5'])
    assert ts.is_completed_on(task, '2025-02-05')


# ==============================================================================
# AGREGACIÓN MENSUAL
# ==============================================================================

def test_month_days_respects_leap_years():
    assert len(ts.month_days(2024, 2)) == 29
    assert len(ts.month_days(2025, 2)) == 28
    assert ts.month_days(2025, 4)[-1] == '2025-04-30'


def test_constant_task_on_leap_day_only_in_leap_februaries():
    task = make_task('t1', '2024-02-29', 'constante')
    assert ts.tasks_for_date([task], '2024-03-29') == [task]
    assert all(not tasks for _, tasks in ts.calendar_month([task], 2025, 2))


def test_pending_for_month_is_chronological_and_skips_completed():
    tasks = [
        make_task('late', '2025-03-20'),
        make_task('monthly', '2025-01-05', 'constante', completedDates=['2025-03-05']),
        make_task('early', '2025-03-01'),
        make_task('done', '2025-03-10', status='realizada'),
    ]
    pending = ts.pending_for_month(tasks, 2025, 3)
    assert [(task['id'], day) for task, day in pending] == [
        ('early', '2025-03-01'),
        ('late', '2025-03-20'),
    ]

    april = ts.pending_for_month(tasks, 2025, 4)
    assert [(task['id'], day) for task, day in april] == [('monthly', '2025-04-05')]


def test_calendar_month_covers_every_day():
    days = ts.calendar_month([make_task('t1', '2025-06-15')], 2025, 6)
    assert len(days) == 30
    assert days[0][0] == '2025-06-01'
    assert [d for d, tasks in days if tasks] == ['2025-06-15']

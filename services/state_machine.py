# services/state_machine.py
"""
Appointment status lifecycle.

PENDING -> CONFIRMED, REQUIRES_RESCHEDULE or CANCELLED
CONFIRMED -> IN_CONSULTATION, CANCELLED, NO_SHOW or REQUIRES_RESCHEDULE
IN_CONSULTATION -> PAID or TRANSFER_PENDING
TRANSFER_PENDING -> PAID or CANCELLED
PAID -> COMPLETED
REQUIRES_RESCHEDULE -> PENDING or CANCELLED

Terminal: COMPLETED, CANCELLED, NO_SHOW

The machine never touches storage. Callers consult it inside the same
transaction that writes the new status.
"""
from core.constants import AppointmentStatus
from core.exceptions import InvalidTransitionError

S = AppointmentStatus

INITIAL_STATUS = S.PENDING

TRANSITIONS = {
    S.PENDING: frozenset({S.CONFIRMED, S.REQUIRES_RESCHEDULE, S.CANCELLED}),
    S.CONFIRMED: frozenset({
        S.IN_CONSULTATION, S.CANCELLED, S.NO_SHOW, S.REQUIRES_RESCHEDULE,
    }),
    S.IN_CONSULTATION: frozenset({S.PAID, S.TRANSFER_PENDING}),
    S.TRANSFER_PENDING: frozenset({S.PAID, S.CANCELLED}),
    S.PAID: frozenset({S.COMPLETED}),
    S.REQUIRES_RESCHEDULE: frozenset({S.PENDING, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset({S.COMPLETED, S.CANCELLED, S.NO_SHOW})

# Appointments that still hold a booking
ACTIVE_BOOKING_STATUSES = frozenset({S.PENDING, S.CONFIRMED})

# Appointments whose price counts as collected revenue
REVENUE_STATUSES = frozenset({S.COMPLETED, S.PAID})

DESCRIPTIONS = {
    S.PENDING: "La cita ha sido creada pero aún no confirmada por el paciente",
    S.CONFIRMED: "El paciente ha confirmado su asistencia a la cita",
    S.IN_CONSULTATION: "El doctor está atendiendo al paciente en este momento",
    S.TRANSFER_PENDING: (
        "Pago por transferencia en curso. Esperando confirmación bancaria "
        "para marcar como pagada."
    ),
    S.PAID: "El paciente ha realizado el pago de la consulta",
    S.COMPLETED: "La consulta ha sido completada exitosamente",
    S.CANCELLED: "La cita fue cancelada",
    S.NO_SHOW: "El paciente no asistió a la cita programada",
    S.REQUIRES_RESCHEDULE: "Es necesario reagendar esta cita",
}

COLOR_CLASSES = {
    S.PENDING: "bg-yellow-100 text-yellow-700",
    S.CONFIRMED: "bg-blue-100 text-blue-700",
    S.IN_CONSULTATION: "bg-purple-100 text-purple-700",
    S.TRANSFER_PENDING: "bg-amber-100 text-amber-700",
    S.PAID: "bg-indigo-100 text-indigo-700",
    S.COMPLETED: "bg-green-100 text-green-700",
    S.CANCELLED: "bg-gray-100 text-gray-700",
    S.NO_SHOW: "bg-red-100 text-red-700",
    S.REQUIRES_RESCHEDULE: "bg-orange-100 text-orange-700",
}
DEFAULT_COLOR_CLASS = "bg-gray-100 text-gray-700"


def coerce(status):
    """The AppointmentStatus for ``status``, or None if it is not one"""
    try:
        return S(status)
    except (ValueError, TypeError):
        return None


def available_transitions(from_status):
    """Legal targets from ``from_status``; empty for terminal or unknown states."""
    current = coerce(from_status)
    if current is None:
        return frozenset()
    return TRANSITIONS[current]


def is_valid_transition(from_status, to_status):
    target = coerce(to_status)
    return target is not None and target in available_transitions(from_status)


def assert_transition(from_status, to_status):
    if not is_valid_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status)


def is_terminal(status):
    return coerce(status) in TERMINAL_STATUSES


def label(status):
    current = coerce(status)
    return current.label if current is not None else str(status)


def description(status):
    current = coerce(status)
    return DESCRIPTIONS.get(current, "")


def color_class(status):
    return COLOR_CLASSES.get(coerce(status), DEFAULT_COLOR_CLASS)


def describe(status):
    """Presentation payload for a status (used by serializers)."""
    return {
        "status": str(status),
        "label": label(status),
        "description": description(status),
        "color_class": color_class(status),
        "is_terminal": is_terminal(status),
        "available_transitions": sorted(str(s) for s in available_transitions(status)),
    }

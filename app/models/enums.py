from enum import IntEnum


class Role(IntEnum):
    STUDENT = 1
    TEACHER = 2
    IT_COORDINATOR = 3


class TicketStatus(IntEnum):
    OPEN = 1
    IN_PROGRESS = 2
    RESOLVED = 3
    CLOSED = 4


class TicketPriority(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    URGENT = 4


class TicketCategory(IntEnum):
    HARDWARE = 1
    SOFTWARE = 2
    NETWORK = 3
    OTHER = 4


# Roles allowed to file tickets
REQUESTER_ROLES = frozenset({Role.STUDENT, Role.TEACHER})

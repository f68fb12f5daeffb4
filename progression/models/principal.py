from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

        learner_id: subject from JWT (the learner's UUID)
        roles: platform roles (student, instructor, admin)
    """

    learner_id: UUID
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles

    def can_act_for(self, learner_id: UUID) -> bool:
        return self.learner_id == learner_id or self.is_platform_admin()

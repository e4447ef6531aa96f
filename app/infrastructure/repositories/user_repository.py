"""Persistence layer for user profiles."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import User
from app.infrastructure.models import ProjectMemberModel, UserModel


class UserRepository:
    """Provide lookups and creation for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            username=user.username,
            email=user.email,
            is_active=user.is_active,
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def add_project_member(self, project_id: int, user_id: int) -> None:
        if self.session.get(ProjectMemberModel, (project_id, user_id)) is not None:
            return
        self.session.add(ProjectMemberModel(project_id=project_id, user_id=user_id))
        self.session.commit()

    def list_project_member_ids(self, project_id: int) -> list[int]:
        query = self.session.query(ProjectMemberModel.user_id).filter(
            ProjectMemberModel.project_id == project_id
        )
        return [user_id for (user_id,) in query.all()]

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            username=model.username,
            email=model.email,
            is_active=model.is_active,
        )


__all__ = ["UserRepository"]

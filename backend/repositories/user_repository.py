from sqlalchemy.orm import Session, selectinload

from backend.models.team import Team
from backend.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)


class TeamRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, team_id: str) -> Team | None:
        return (
            self.db.query(Team)
            .options(selectinload(Team.members))
            .filter(Team.id == team_id)
            .first()
        )

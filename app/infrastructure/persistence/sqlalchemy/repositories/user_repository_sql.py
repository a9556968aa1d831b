from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User
from .....application.ports.user_repo import Role, UserRepository, UserDto
from .....application.ports.clock import Clock
from .....exceptions import Conflict, NotFound

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session, clock: Clock):
        self.session = session
        self.clock = clock

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            role=Role(user.role),
            full_name=user.full_name,
            phone=user.phone,
            is_active=bool(user.is_active),
            district_id=user.district_id,
            phone_secondary=user.phone_secondary,
            aadhaar_number=user.aadhaar_number,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _get(self, user_id: str) -> User:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        if not user:
            raise NotFound("User not found.")
        return user

    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.phone == phone)).first()
        return self._to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.id == user_id)).first()
        return self._to_dto(user) if user else None

    def exists_with_role(self, role: Role) -> bool:
        return self.session.exec(select(User.id).where(User.role == Role(role).value)).first() is not None

    def create(self, role: Role, full_name: str, phone: str, district_id: Optional[str] = None,
               phone_secondary: Optional[str] = None, aadhaar_number: Optional[str] = None) -> UserDto:
        now = self.clock.now()
        user = User(
            role=Role(role).value,
            full_name=full_name,
            phone=phone,
            district_id=district_id,
            phone_secondary=phone_secondary,
            aadhaar_number=aadhaar_number,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self.session.add(user)
        try:
            self.session.flush()
        except IntegrityError as e:
            raise Conflict("Phone number is already registered.") from e
        return self._to_dto(user)

    def update_profile(self, user_id: str, full_name: str, district_id: Optional[str] = None,
                       phone_secondary: Optional[str] = None, aadhaar_number: Optional[str] = None,
                       is_active: bool = True) -> UserDto:
        user = self._get(user_id)
        user.full_name = full_name
        user.district_id = district_id
        user.phone_secondary = phone_secondary
        user.aadhaar_number = aadhaar_number
        user.is_active = is_active
        user.updated_at = self.clock.now()
        self.session.add(user)
        self.session.flush()
        return self._to_dto(user)

    def set_role(self, user_id: str, role: Role) -> UserDto:
        user = self._get(user_id)
        user.role = Role(role).value
        user.updated_at = self.clock.now()
        self.session.add(user)
        self.session.flush()
        return self._to_dto(user)

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session
from core.database import get_db, utcnow
from core.errors import NotFound
from models.link import Link
from models.user import User
from api.auth import UserOut
from api.links import LinkOut

router = APIRouter()


class ProfileUpdate(BaseModel):
    """
    Класс для частичного обновления профиля.

    Отсутствующее поле не меняется, явный null очищает его.

    Атрибуты:
        display_name (str | None): Отображаемое имя.
        bio (str | None): Описание профиля.
        avatar_url (str | None): Адрес аватара.
    """

    model_config = ConfigDict(from_attributes=True)
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None


@router.patch("/{user_id}", response_model=UserOut)
def update_profile(user_id: int, profile_in: ProfileUpdate, db: Session = Depends(get_db)):
    """
    Обновляет профиль пользователя.

    Args:
        user_id (int): Идентификатор пользователя.
        profile_in (ProfileUpdate): Поля профиля. Меняются только явно переданные.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        UserOut: Профиль после обновления. updated_at обновляется при каждом вызове.
    """

    user = db.query(User).filter(User.id == user_id).first()

    if not user:
        raise NotFound("Пользователь не найден")

    for name, value in profile_in.model_dump(exclude_unset=True).items():
        setattr(user, name, value)
    user.updated_at = utcnow()

    db.commit()
    db.refresh(user)

    return user


@router.get("/{owner_id}/links", response_model=list[LinkOut])
def list_owner_links(owner_id: int, db: Session = Depends(get_db)):
    """
    Получает все ссылки владельца, включая отключённые.

    Args:
        owner_id (int): Идентификатор владельца.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        list[LinkOut]: Ссылки по возрастанию order_index, при равенстве - по id.
                       Пустой список, если ссылок нет.
    """

    return (
        db.query(Link)
        .filter(Link.owner_id == owner_id)
        .order_by(Link.order_index, Link.id)
        .all()
    )

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session
from core.database import get_db
from core.errors import NotFound
from models.link import Link
from models.user import User

router = APIRouter()


class PublicLink(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    title: str
    url: str
    icon: str | None = None
    click_count: int


class PublicProfile(BaseModel):
    """
    Публичная страница пользователя.

    Атрибуты:
        username (str): Имя пользователя.
        display_name (str | None): Отображаемое имя.
        bio (str | None): Описание профиля.
        avatar_url (str | None): Адрес аватара.
        links (list[PublicLink]): Активные ссылки в порядке order_index.

    Идентификатор владельца, email, пароль и временные метки сюда не попадают.
    """

    model_config = ConfigDict(from_attributes=True)
    username: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    links: list[PublicLink]


@router.get("/{username}", response_model=PublicProfile)
def get_public_profile(username: str, db: Session = Depends(get_db)):
    """
    Собирает публичную страницу пользователя.

    Args:
        username (str): Имя пользователя из адреса страницы.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        PublicProfile: Публичные поля пользователя и его активные ссылки.
    """

    user = db.query(User).filter(User.username == username).first()

    if not user:
        raise NotFound("Пользователь не найден")

    links = (
        db.query(Link)
        .filter(Link.owner_id == user.id, Link.is_active.is_(True))
        .order_by(Link.order_index, Link.id)
        .all()
    )

    return PublicProfile(
        username=user.username,
        display_name=user.display_name,
        bio=user.bio,
        avatar_url=user.avatar_url,
        links=[PublicLink.model_validate(link) for link in links],
    )

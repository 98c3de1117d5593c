import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ConfigDict, AnyUrl, TypeAdapter, field_validator, model_validator
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from core.database import get_db, utcnow
from core.errors import Inactive, NotFound
from models.link import Link
from models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()
url_adapter = TypeAdapter(AnyUrl)


def check_url(value: str) -> str:
    # значение хранится как есть, AnyUrl только проверяет синтаксис
    url_adapter.validate_python(value)
    return value


class LinkCreate(BaseModel):
    """
    Схема для создания новой ссылки.

    Атрибуты:
        owner_id (int): Идентификатор владельца.
        title (str): Подпись, от 1 до 100 символов.
        url (str): Абсолютный URL.
        icon (str | None): Иконка ссылки.
        order_index (int | None): Позиция ссылки. Если не указана, ссылка встаёт в конец списка.
    """

    model_config = ConfigDict(from_attributes=True)
    owner_id: int
    title: str = Field(..., min_length=1, max_length=100)
    url: str
    icon: str | None = None
    order_index: int | None = Field(None, ge=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value):
        return check_url(value)


class LinkUpdate(BaseModel):
    """
    Класс для частичного обновления ссылки.

    Меняются только поля, явно переданные в запросе (см. model_fields_set).
    Явный null допустим только для icon и очищает её.

    Атрибуты:
        title (str | None): Новая подпись.
        url (str | None): Новый URL.
        icon (str | None): Новая иконка или null, чтобы её убрать.
        is_active (bool | None): Показывать ли ссылку публично.
        order_index (int | None): Новая позиция.
    """

    model_config = ConfigDict(from_attributes=True)
    title: str | None = Field(None, min_length=1, max_length=100)
    url: str | None = None
    icon: str | None = None
    is_active: bool | None = None
    order_index: int | None = Field(None, ge=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value):
        return check_url(value) if value is not None else value

    @model_validator(mode="after")
    def reject_null(self):
        for name in ("title", "url", "is_active", "order_index"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} не может быть null")
        return self


class LinkOut(BaseModel):
    """
    Класс для вывода информации о ссылке.

    Атрибуты:
        id (int): Уникальный идентификатор ссылки.
        owner_id (int): Идентификатор владельца.
        title (str): Подпись.
        url (str): Адрес ссылки.
        icon (str | None): Иконка.
        click_count (int): Количество переходов по ссылке.
        is_active (bool): Показывается ли ссылка публично.
        order_index (int): Позиция среди ссылок владельца.
        created_at (datetime): Дата и время создания ссылки.
        updated_at (datetime): Дата и время последнего изменения.
    """

    model_config = ConfigDict(from_attributes=True)
    id: int
    owner_id: int
    title: str
    url: str
    icon: str | None = None
    click_count: int
    is_active: bool
    order_index: int
    created_at: datetime
    updated_at: datetime


class ClickOut(BaseModel):
    success: bool
    click_count: int


def next_order_index(db: Session, owner_id: int) -> int:
    current = db.query(func.max(Link.order_index)).filter(Link.owner_id == owner_id).scalar()
    return 0 if current is None else current + 1


@router.post("/", response_model=LinkOut, status_code=201)
def create_link(link_in: LinkCreate, db: Session = Depends(get_db)):
    """
    Создает новую ссылку пользователя.

    Args:
        link_in (LinkCreate): Данные ссылки, включая владельца и необязательную позицию.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        LinkOut: Созданная ссылка с id и временными метками.

    - Если владелец не найден, генерируется исключение HTTP 404.
    - Если order_index не указан, он равен максимальному order_index ссылок владельца плюс один,
      либо 0 для первой ссылки. Чтение максимума и вставка идут в одной транзакции.
    - Новая ссылка всегда активна и имеет нулевой счетчик переходов.
    """

    if not db.query(User.id).filter(User.id == link_in.owner_id).first():
        raise NotFound("Пользователь не найден")

    order_index = link_in.order_index
    if order_index is None:
        order_index = next_order_index(db, link_in.owner_id)

    link = Link(
        owner_id=link_in.owner_id,
        title=link_in.title,
        url=link_in.url,
        icon=link_in.icon,
        order_index=order_index,
        click_count=0,
        is_active=True,
    )

    db.add(link)
    db.commit()
    db.refresh(link)

    logger.info("Created link %s for user %s at position %s", link.id, link.owner_id, link.order_index)
    return link


@router.patch("/{link_id}", response_model=LinkOut)
def update_link(link_id: int, link_in: LinkUpdate, db: Session = Depends(get_db)):
    """
    Частично обновляет ссылку.

    Args:
        link_id (int): Идентификатор ссылки.
        link_in (LinkUpdate): Поля для обновления. Отсутствующие поля не меняются.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        LinkOut: Состояние ссылки после обновления.

    - updated_at обновляется при каждом вызове, даже с пустым телом запроса.
    """

    link = db.query(Link).filter(Link.id == link_id).first()

    if not link:
        raise NotFound("Ссылка не найдена")

    for name, value in link_in.model_dump(exclude_unset=True).items():
        setattr(link, name, value)
    link.updated_at = utcnow()

    db.commit()
    db.refresh(link)

    return link


@router.delete("/{link_id}", response_model=dict)
def delete_link(link_id: int, db: Session = Depends(get_db)):
    """
    Удаляет ссылку. Позиции остальных ссылок владельца не меняются.

    Args:
        link_id (int): Идентификатор ссылки.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        dict: {"success": True}.
    """

    link = db.query(Link).filter(Link.id == link_id).first()

    if not link:
        raise NotFound("Ссылка не найдена")

    db.delete(link)
    db.commit()

    logger.info("Deleted link %s", link_id)
    return {"success": True}


@router.post("/{link_id}/click", response_model=ClickOut)
def track_click(link_id: int, db: Session = Depends(get_db)):
    """
    Учитывает переход по ссылке.

    Args:
        link_id (int): Идентификатор ссылки.
        db (Session): Сессия базы данных, предоставляемая через зависимость get_db().

    Returns:
        ClickOut: Признак успеха и значение счетчика после увеличения.

    - Счетчик увеличивается одним UPDATE на стороне базы, поэтому параллельные переходы не теряются.
    - Для несуществующей ссылки генерируется HTTP 404, для отключённой - HTTP 410.
    """

    click_count = db.execute(
        update(Link)
        .where(Link.id == link_id, Link.is_active.is_(True))
        .values(click_count=Link.click_count + 1, updated_at=utcnow())
        .returning(Link.click_count)
        .execution_options(synchronize_session=False)
    ).scalar()

    if click_count is None:
        db.rollback()
        exists = db.query(Link.id).filter(Link.id == link_id).first()
        if not exists:
            raise NotFound("Ссылка не найдена")
        raise Inactive("Ссылка отключена")

    db.commit()
    return ClickOut(success=True, click_count=click_count)

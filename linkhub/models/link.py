from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from core.database import Base, utcnow


class Link(Base):
    """
    Класс ссылки на странице пользователя.

    Атрибуты:
        id (int): Уникальный идентификатор ссылки.
        owner_id (int): Идентификатор владельца ссылки.
        title (str): Подпись ссылки.
        url (str): Адрес, на который ведёт ссылка.
        icon (str | None): Иконка (эмодзи или идентификатор).
        click_count (int): Количество переходов по ссылке.
        is_active (bool): Показывается ли ссылка на публичной странице.
        order_index (int): Позиция ссылки среди ссылок владельца. Не обязана быть уникальной.
        created_at (datetime): Дата и время создания ссылки.
        updated_at (datetime): Дата и время последнего изменения, включая переходы.
        owner (User): Объект пользователя, владеющий ссылкой.
    """

    __tablename__ = "links"
    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String(100), nullable=False)
    url = Column(Text, nullable=False)
    icon = Column(Text, nullable=True)
    click_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    order_index = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    owner = relationship("User", back_populates="links")

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from core.database import Base, utcnow


class User(Base):
    """
    Класс пользователя.

    Атрибуты:
        id (int): Уникальный идентификатор пользователя.
        username (str): Уникальное имя пользователя, оно же адрес публичной страницы.
        email (str): Уникальный адрес электронной почты, используется для входа.
        password_hash (str): Хэш пароля пользователя.
        display_name (str | None): Отображаемое имя.
        bio (str | None): Короткое описание профиля.
        avatar_url (str | None): Адрес аватара.
        created_at (datetime): Дата и время создания записи пользователя.
        updated_at (datetime): Дата и время последнего изменения профиля.
        links (List[Link]): Список ссылок пользователя.
    """

    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    display_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    links = relationship("Link", back_populates="owner")

import logging
import secrets
from datetime import datetime

from fastapi import APIRouter, Request, Response, Depends
from pydantic import BaseModel, EmailStr, Field, ConfigDict, TypeAdapter, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import redis
from core.config import REDIS_URL, SESSION_TTL
from core.database import get_db
from core.errors import Conflict, Unauthenticated
from models.user import User
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

router = APIRouter()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
SESSION_COOKIE = "session_id"
email_adapter = TypeAdapter(EmailStr)


def check_email(value: str) -> str:
    # EmailStr нормализует домен, а вход сравнивает email как есть
    email_adapter.validate_python(value)
    return value


class UserCreate(BaseModel):
    """
    Класс для регистрации нового пользователя.

    Атрибуты:
        username (str): Имя пользователя, 3-30 символов: латиница, цифры и подчёркивание.
        email (str): Адрес электронной почты, хранится в том виде, в котором указан.
        password (str): Пароль пользователя (минимум 6 символов).
        display_name (str | None): Отображаемое имя.
        bio (str | None): Описание профиля.

    Email проверяется через EmailStr, но хранится без нормализации.
    Пустые display_name и bio сохраняются как null.
    """

    model_config = ConfigDict(from_attributes=True)
    username: str = Field(..., pattern=r"^[A-Za-z0-9_]{3,30}$")
    email: str
    password: str = Field(..., min_length=6)
    display_name: str | None = None
    bio: str | None = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class UserOut(BaseModel):
    """
    Публичные поля пользователя. Хэш пароля сюда никогда не попадает.

    Атрибуты:
        id (int): Уникальный идентификатор пользователя.
        username (str): Имя пользователя.
        email (str): Электронная почта пользователя.
        display_name (str | None): Отображаемое имя.
        bio (str | None): Описание профиля.
        avatar_url (str | None): Адрес аватара.
        created_at (datetime): Дата и время создания пользователя.
        updated_at (datetime): Дата и время последнего изменения профиля.
    """

    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    email: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime


class UserLogin(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value):
        return check_email(value)


class AuthResponse(BaseModel):
    """
    Ответ регистрации и входа.

    Атрибуты:
        user (UserOut): Данные пользователя.
        token (str | None): Токен сессии. Выдаётся только при входе.
    """

    user: UserOut
    token: str | None = None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def session_key(token: str) -> str:
    return f"session:{token}"


def create_session_token(user_id: int) -> str:
    token = secrets.token_urlsafe(32)
    redis_client.setex(session_key(token), SESSION_TTL, user_id)
    return token


def get_current_user(request: Request, db: Session = Depends(get_db)):
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        raise Unauthenticated("Не авторизован")
    user_id = redis_client.get(session_key(token))
    if not user_id:
        raise Unauthenticated("Сессия недействительна")
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise Unauthenticated("Пользователь не найден")
    return user


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(user_in: UserCreate, db: Session = Depends(get_db)):
    """
    Регистрация нового пользователя.

    Args:
        user_in (UserCreate): Данные нового пользователя.
        db (Session): Сессия базы данных, предоставляемая зависимостью get_db().

    Returns:
        AuthResponse: Публичные данные созданного пользователя, токен не выдаётся.

    - Занятость username и email проверяется одним запросом.
    - Если заняты оба, сообщается о username.
    - В базе хранится только bcrypt-хэш пароля.
    """

    existing = db.query(User).filter(
        or_(User.username == user_in.username, User.email == user_in.email)
    ).all()

    if any(u.username == user_in.username for u in existing):
        logger.info("Registration rejected: username %s is taken", user_in.username)
        raise Conflict("Имя пользователя уже занято")
    if any(u.email == user_in.email for u in existing):
        logger.info("Registration rejected: email is taken")
        raise Conflict("Email уже зарегистрирован")

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=hash_password(user_in.password),
        display_name=user_in.display_name or None,
        bio=user_in.bio or None,
    )

    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # параллельная регистрация успела занять username или email
        db.rollback()
        raise Conflict("Имя пользователя или email уже заняты")
    db.refresh(user)

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return AuthResponse(user=UserOut.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(user_in: UserLogin, response: Response, db: Session = Depends(get_db)):
    """
    Вход по email и паролю.

    Args:
        user_in (UserLogin): Email и пароль.
        response (Response): Ответ, в который устанавливается cookie "session_id".
        db (Session): Сессия базы данных, предоставляемая зависимостью get_db().

    Returns:
        AuthResponse: Публичные данные пользователя и токен сессии со сроком жизни SESSION_TTL.

    - Email сравнивается с учётом регистра.
    - Неизвестный email и неверный пароль дают одну и ту же ошибку 401.
    """

    user = db.query(User).filter(User.email == user_in.email).first()

    if not user or not verify_password(user_in.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise Unauthenticated("Неверные учетные данные")

    token = create_session_token(user.id)
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=True, max_age=SESSION_TTL)

    return AuthResponse(user=UserOut.model_validate(user), token=token)


@router.get("/session", response_model=UserOut)
def session(current_user: User = Depends(get_current_user)):
    """
    Возвращает пользователя текущей сессии.

    Args:
        current_user (User): Пользователь, полученный через зависимость get_current_user().

    Returns:
        UserOut: Публичные данные пользователя.
    """

    return current_user


@router.post("/logout", response_model=dict)
def logout(request: Request, response: Response):
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        redis_client.delete(session_key(token))
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}

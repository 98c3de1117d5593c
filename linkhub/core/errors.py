from fastapi import HTTPException


class LinkHubError(HTTPException):
    """
    Базовая ошибка сервиса.

    Каждый подкласс задаёт собственный HTTP-статус и машинно-читаемый код,
    который обработчик в app.py кладёт в тело ответа рядом с detail.
    """

    status_code = 500
    code = "error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class Conflict(LinkHubError):
    status_code = 409
    code = "conflict"


class NotFound(LinkHubError):
    status_code = 404
    code = "not_found"


class Unauthenticated(LinkHubError):
    status_code = 401
    code = "unauthenticated"


class Inactive(LinkHubError):
    """Переход по отключённой ссылке."""

    status_code = 410
    code = "inactive"

# relaychat/core/admin.py
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from fastapi import Request
from relaychat.core.security import verify_password, create_access_token, decode_token
from relaychat.core.config import settings
from relaychat.repositories.user_repository import UserRepository
from relaychat.core.database import db_helper
from relaychat.models.user import User, UserRole
from relaychat.models.media import Media
from relaychat.models.message import Message


# 1. Авторизация в админке (только role == admin)
class AdminAuth(AuthenticationBackend):
    session_factory = db_helper.session_factory

    async def login(self, request: Request) -> bool:
        form = await request.form()
        email, password = form.get("username", ""), form.get("password", "")

        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_email(email)

        if user and user.role == UserRole.ADMIN.value and verify_password(password, user.password_hash):
            request.session.update({"token": create_access_token(user.id)})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        token = request.session.get("token")
        if not token:
            return False
        try:
            payload = decode_token(token)
            user_id = int(payload.get("sub"))
        except (ValueError, TypeError):
            return False

        # Роль проверяется на каждый запрос: разжалованный админ теряет доступ сразу
        async with self.session_factory() as session:
            user = await UserRepository(session).get_by_id(user_id)
        if user is None or user.role != UserRole.ADMIN.value:
            request.session.clear()
            return False
        return True


authentication_backend = AdminAuth(secret_key=settings.security.JWT_SECRET_KEY.get_secret_value())


# 2. Представления моделей. Сообщения и медиа неизменяемы - только просмотр.
# Пользователи не удаляются, только редактируются

class UserAdmin(ModelView, model=User):
    column_list = [User.id, User.username, User.email, User.role, User.created_at]
    column_searchable_list = [User.username, User.email]
    column_sortable_list = [User.id, User.created_at]
    form_columns = [User.username, User.email, User.bio, User.role]
    can_delete = False
    icon = "fa-solid fa-user"


class MediaAdmin(ModelView, model=Media):
    column_list = [Media.id, Media.type, Media.format, Media.hash, Media.created_at]
    can_create = False
    can_edit = False
    can_delete = False
    icon = "fa-solid fa-image"


class MessageAdmin(ModelView, model=Message):
    column_list = [Message.id, Message.type, Message.sender, Message.recipient_id, Message.content, Message.created_at]
    column_searchable_list = [Message.content]
    column_sortable_list = [Message.id, Message.created_at]
    can_create = False
    can_edit = False
    can_delete = False
    icon = "fa-solid fa-comments"


# 3. Инициализация
def setup_admin(app, engine):
    admin = Admin(app, engine, authentication_backend=authentication_backend, title="RelayChat Admin")

    admin.add_view(UserAdmin)
    admin.add_view(MediaAdmin)
    admin.add_view(MessageAdmin)

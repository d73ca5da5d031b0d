from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse
from fastapi import Request

from olda.utils.enums import UserRole
from olda.utils.flash import flash


ACCESS_MATRIX = {
    UserRole.ADMIN.value: ["*"],  # полный доступ
    UserRole.PRT_RECIPIENT.value: ["/admin/orders", "/admin/prt"],
    UserRole.STAFF.value: ["/admin/orders", "/admin/prt"],
}


def is_allowed(role: str, path: str) -> bool:
    allowed_paths = ACCESS_MATRIX.get(role, [])
    return "*" in allowed_paths or any(path.startswith(p) for p in allowed_paths)


class RBACMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path

        # Проверяем только разделы админки
        if path.startswith("/admin"):
            role = (request.session.get("role") or "").strip().lower()

            if not role:
                return RedirectResponse("/login", status_code=303)

            if not is_allowed(role, path):
                flash(request, "❌ Accès refusé à cette page.")
                return RedirectResponse("/admin/orders" if is_allowed(role, "/admin/orders") else "/login",
                                        status_code=303)

        return await call_next(request)

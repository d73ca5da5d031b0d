from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from olda import config
from olda.services.client_storage import KeyValueStore, get_store
from olda.services.prt_requests import CATEGORIES, PRTQueue
from olda.utils.enums import PRT_LABELS_FR
from olda.utils.flash import flash, pop_flash
from olda.utils.permissions import identity_from_session

templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))
router = APIRouter(prefix="/admin/prt", tags=["admin-prt"])


# Очередь на время запроса: читаем свежий список, после ответа отписываемся
def get_prt_queue(request: Request, store: KeyValueStore = Depends(get_store)):
    queue = PRTQueue(store, identity_from_session(request.session))
    try:
        yield queue
    finally:
        queue.close()


def _back() -> RedirectResponse:
    return RedirectResponse(url="/admin/prt", status_code=303)


@router.get("", response_class=HTMLResponse)
def prt_panel(request: Request, queue: PRTQueue = Depends(get_prt_queue)):
    return templates.TemplateResponse(request, "admin/prt_panel.html", {
        "queue": queue,
        "requests": queue.requests,
        "categories": CATEGORIES,
        "status_labels": PRT_LABELS_FR,
        "flash": pop_flash(request),
    })


@router.post("/submit")
def prt_submit(
    request: Request,
    category: str = Form(CATEGORIES[0]),
    size: str = Form(""),
    quantity: int = Form(1),
    color: str = Form(""),
    queue: PRTQueue = Depends(get_prt_queue),
):
    if queue.submit(category=category, size=size, quantity=quantity, color=color):
        flash(request, "Envoyé !")
    else:
        flash(request, "Taille et couleur obligatoires")
    return _back()


@router.post("/{request_id}/seen")
def prt_seen(request_id: str, queue: PRTQueue = Depends(get_prt_queue)):
    queue.mark_seen(request_id)
    return _back()


@router.post("/{request_id}/done")
def prt_done(request_id: str, queue: PRTQueue = Depends(get_prt_queue)):
    queue.mark_done(request_id)
    return _back()


@router.post("/{request_id}/delete")
def prt_delete(request: Request, request_id: str, queue: PRTQueue = Depends(get_prt_queue)):
    if not queue.remove(request_id):
        flash(request, "❌ Suppression non autorisée")
    return _back()


@router.post("/clear-done")
def prt_clear_done(queue: PRTQueue = Depends(get_prt_queue)):
    queue.clear_done()
    return _back()

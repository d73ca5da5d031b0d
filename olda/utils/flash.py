from fastapi import Request


def flash(request: Request, msg: str) -> None:
    request.session["flash"] = msg


def pop_flash(request: Request) -> str:
    msg = request.session.get("flash")
    if "flash" in request.session:
        del request.session["flash"]
    return msg or ""

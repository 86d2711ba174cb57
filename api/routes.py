"""FastAPI routes for the interviewer client."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from config.settings import settings
from api.schemas import ChatSummary, ChatView, DraftsReq, MessageReq, SignInReq, SignInResp, StartReq
from errors import InterviewError
from interview_session import InterviewSession
from services import sessions
from session_reports import generate_transcript_pdf


router = APIRouter(prefix="/api")

CLIENT_COOKIE = "client_id"


def current_client(request: Request, response: Response) -> InterviewSession:
    client_id = request.cookies.get(CLIENT_COOKIE)
    if not client_id:
        client_id = sessions.new_client_id()
        response.set_cookie(CLIENT_COOKIE, client_id, httponly=True, samesite="lax")
    return sessions.get_or_create(client_id)


def _view(client: InterviewSession) -> ChatView:
    return ChatView.build(client.snapshot(), user=client.identity, saved_chats=client.saved_chats)


@router.get("/state", response_model=ChatView)
def get_state(client: InterviewSession = Depends(current_client)) -> ChatView:
    return _view(client)


@router.put("/drafts", response_model=ChatView)
def update_drafts(req: DraftsReq, client: InterviewSession = Depends(current_client)) -> ChatView:
    client.update_drafts(problem=req.problem, code=req.code)
    return _view(client)


@router.post("/interview/start", response_model=ChatView)
def start_interview(req: StartReq, client: InterviewSession = Depends(current_client)) -> ChatView:
    client.start_interview(req.problem, req.code)
    return _view(client)


@router.post("/interview/message", response_model=ChatView)
def send_message(req: MessageReq, client: InterviewSession = Depends(current_client)) -> ChatView:
    client.send_message(req.text)
    return _view(client)


@router.post("/chats/new", response_model=ChatView)
def new_chat(client: InterviewSession = Depends(current_client)) -> ChatView:
    client.new_chat()
    return _view(client)


@router.get("/chats", response_model=List[ChatSummary])
def list_chats(client: InterviewSession = Depends(current_client)) -> List[ChatSummary]:
    return [ChatSummary.from_session(chat) for chat in client.refresh_sessions()]


@router.post("/chats/{session_id}/select", response_model=ChatView)
def select_chat(session_id: str, client: InterviewSession = Depends(current_client)) -> ChatView:
    client.select_session(session_id)
    return _view(client)


@router.get("/chats/{session_id}/transcript.pdf")
def transcript_pdf(session_id: str, client: InterviewSession = Depends(current_client)) -> Response:
    user = client.identity
    if user is None:
        raise HTTPException(status_code=401, detail="Please sign in to export chats.")
    try:
        chat = client.store.get_session(user.id, session_id)
    except InterviewError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found.")
    return Response(
        content=generate_transcript_pdf(chat),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="interview_{session_id}.pdf"'},
    )


@router.post("/auth/sign-in", response_model=SignInResp)
def sign_in(req: SignInReq, client: InterviewSession = Depends(current_client)) -> SignInResp:
    result = client.sign_in(req.credential)
    error: Optional[str] = None
    if result.identity is None and result.redirect_url is None:
        error = client.snapshot().last_error
    return SignInResp(user=result.identity, redirect_url=result.redirect_url, error=error)


@router.get("/auth/callback")
def auth_callback(
    code: str,
    state: Optional[str] = None,
    client: InterviewSession = Depends(current_client),
) -> RedirectResponse:
    client.complete_sign_in(code, state)
    return RedirectResponse(url=settings.FRONTEND_URL, status_code=303)


@router.post("/auth/sign-out", response_model=ChatView)
def sign_out(client: InterviewSession = Depends(current_client)) -> ChatView:
    client.sign_out()
    return _view(client)


@router.delete("/client")
def forget_client(request: Request, response: Response) -> dict:
    client_id = request.cookies.get(CLIENT_COOKIE)
    dropped = sessions.drop(client_id) if client_id else False
    response.delete_cookie(CLIENT_COOKIE)
    return {"ok": dropped}

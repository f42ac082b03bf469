"""FastAPI application with all routes."""
from __future__ import annotations

import logging

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request

from quiz_practice.config import Settings, coerce_setting, load_settings, save_settings
from quiz_practice.models import (
    COMPREHENSIVE_SUBJECT,
    SUBJECTS,
    Difficulty,
    SessionMode,
    subject_name,
)
from quiz_practice.question_generator import LLMQuestionProvider
from quiz_practice.recovery_store import SessionRecoveryStore
from quiz_practice.session import Phase, QuizSession
from quiz_practice.stats_store import StatsStore, summarize_stats
from quiz_practice.storage import SqliteStorage, Storage, read_user_profile
from quiz_practice.timer import format_time

app = FastAPI(title="Quiz Practice")

# Global state (initialized in startup)
_storage: Storage | None = None
_settings: Settings | None = None
_active_sessions: dict[str, QuizSession] = {}  # subject -> session


def get_storage() -> Storage:
    assert _storage is not None
    return _storage


def get_settings() -> Settings:
    assert _settings is not None
    return _settings


def _get_llm():
    s = get_settings()
    if s.llm_provider == "ollama":
        from quiz_practice.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=s.ollama_url, model=s.llm_model)
    elif s.llm_provider == "anthropic":
        from quiz_practice.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider()
    elif s.llm_provider == "openai":
        from quiz_practice.providers.llm_openai import OpenAIProvider
        return OpenAIProvider()
    raise ValueError(f"Unknown LLM provider: {s.llm_provider}")


def _get_provider():
    return LLMQuestionProvider(_get_llm(), thinking=get_settings().llm_thinking)


def _stats() -> StatsStore:
    return StatsStore(get_storage())


def _check_subject(subject: str) -> None:
    if subject not in SUBJECTS and subject != COMPREHENSIVE_SUBJECT:
        raise HTTPException(404, f"Unknown subject: {subject}")


def _get_session(subject: str) -> QuizSession:
    _check_subject(subject)
    session = _active_sessions.get(subject)
    if session is None:
        s = get_settings()
        storage = get_storage()
        session = QuizSession(
            subject,
            provider=_get_provider(),
            stats=StatsStore(storage),
            recovery=SessionRecoveryStore(storage),
            language=s.quiz_language,
            tick_interval=s.timer_tick_seconds,
        )
        _active_sessions[subject] = session
    return session


@app.on_event("startup")
async def startup():
    global _storage, _settings
    if _storage is not None:
        return  # Already initialized (e.g. by tests)
    _settings = load_settings()
    _storage = SqliteStorage(_settings.db_full_path)


@app.on_event("shutdown")
async def shutdown():
    for session in _active_sessions.values():
        session.close()
    _active_sessions.clear()
    if _storage:
        _storage.close()


# ── Views ─────────────────────────────────────────────────────────────────

def _question_view(session: QuizSession, idx: int) -> dict:
    q = session.state.questions[idx]
    selected = session.state.answers.get(idx)
    view = {
        "index": idx,
        "id": q.id,
        "question_text": q.question_text,
        "options": q.options,
        "selected_index": selected,
    }
    # Exam feedback is deferred until the session is finished
    reveal = session.state.is_finished or (
        session.mode is SessionMode.PRACTICE and selected is not None
    )
    if reveal:
        view["correct_answer_index"] = q.correct_answer_index
        view["is_correct"] = selected == q.correct_answer_index if selected is not None else None
        view["explanation"] = q.explanation
        view["explanation_summary"] = q.explanation_summary
    return view


def _grid_view(session: QuizSession) -> list[dict]:
    grid = []
    for idx, q in enumerate(session.state.questions):
        answered = idx in session.state.answers
        cell = {"index": idx, "answered": answered, "current": idx == session.state.current_index}
        if answered and (session.mode is SessionMode.PRACTICE or session.state.is_finished):
            cell["correct"] = session.state.answers[idx] == q.correct_answer_index
        grid.append(cell)
    return grid


def _session_view(session: QuizSession) -> dict:
    state = session.state
    show_score = session.mode is SessionMode.PRACTICE or state.is_finished
    notice, session.notice = session.notice, ""
    view = {
        "subject": session.subject,
        "subject_name": session.subject_name,
        "language": session.language.value,
        "phase": session.phase.value,
        "mode": session.mode.value,
        "difficulty": session.difficulty.value if session.difficulty else None,
        "current_index": state.current_index,
        "pending_index": session.pending_index,
        "total_questions": len(state.questions),
        "answered_count": len(state.answers),
        "score": state.score if show_score else None,
        "is_finished": state.is_finished,
        "error": session.error or None,
        "notice": notice or None,
        "has_saved_session": session.has_saved_session,
        "is_bookmarked": session.is_bookmarked,
        "questions": _grid_view(session),
        "current_question": None,
    }
    if session.mode is SessionMode.EXAM:
        view["time_left"] = session.time_left
        view["time_left_display"] = format_time(session.time_left)
    if session.current_question is not None:
        view["current_question"] = _question_view(session, state.current_index)
    return view


# ── API: Subjects ─────────────────────────────────────────────────────────

@app.get("/api/subjects")
async def api_subjects():
    recovery = SessionRecoveryStore(get_storage())
    subjects = [{"id": sid, "name": name} for sid, name in SUBJECTS.items()]
    subjects.append({"id": COMPREHENSIVE_SUBJECT, "name": subject_name(COMPREHENSIVE_SUBJECT)})
    for sub in subjects:
        sub["has_saved_session"] = recovery.has_saved(sub["id"])
    return {"subjects": subjects}


# ── API: Quiz session ─────────────────────────────────────────────────────

@app.get("/api/quiz/{subject}")
async def api_quiz_state(subject: str):
    return _session_view(_get_session(subject))


@app.delete("/api/quiz/{subject}")
async def api_quiz_exit(subject: str):
    _check_subject(subject)
    session = _active_sessions.pop(subject, None)
    if session is not None:
        session.close()
    return {"ok": True}


@app.post("/api/quiz/{subject}/mode")
async def api_quiz_mode(subject: str, request: Request):
    body = await request.json()
    try:
        mode = SessionMode(body.get("mode", ""))
    except ValueError:
        raise HTTPException(400, "mode must be 'practice' or 'exam'")
    session = _get_session(subject)
    if not session.set_mode(mode):
        raise HTTPException(409, "Mode can only be changed before a difficulty is chosen")
    return _session_view(session)


@app.post("/api/quiz/{subject}/difficulty")
async def api_quiz_difficulty(subject: str, request: Request):
    body = await request.json()
    try:
        level = Difficulty.parse(body.get("difficulty", ""))
    except ValueError:
        raise HTTPException(400, "difficulty must be easy, medium or hard")
    session = _get_session(subject)
    if session.phase is not Phase.SELECTING_DIFFICULTY:
        raise HTTPException(409, "A difficulty has already been chosen")
    await session.select_difficulty(level)
    return _session_view(session)


@app.post("/api/quiz/{subject}/retry")
async def api_quiz_retry(subject: str):
    session = _get_session(subject)
    await session.retry()
    return _session_view(session)


@app.post("/api/quiz/{subject}/answer")
async def api_quiz_answer(subject: str, request: Request):
    body = await request.json()
    option_index = body.get("option_index")
    if isinstance(option_index, bool) or not isinstance(option_index, int):
        raise HTTPException(400, "option_index must be an integer")
    session = _get_session(subject)
    try:
        result = session.submit_answer(option_index)
    except ValueError as e:
        raise HTTPException(400, str(e))
    view = _session_view(session)
    view["accepted"] = result is not None
    return view


@app.post("/api/quiz/{subject}/next")
async def api_quiz_next(subject: str):
    session = _get_session(subject)
    if (session.mode is SessionMode.EXAM and session.phase is Phase.ACTIVE
            and not session.is_answered):
        raise HTTPException(409, "Answer the question before moving on in exam mode")
    session.advance()
    await session.wait_for_batch()
    return _session_view(session)


@app.post("/api/quiz/{subject}/jump")
async def api_quiz_jump(subject: str, request: Request):
    body = await request.json()
    session = _get_session(subject)
    index = body.get("index")
    if isinstance(index, bool) or not isinstance(index, int) or not session.jump_to(index):
        raise HTTPException(400, "No such question")
    return _session_view(session)


@app.post("/api/quiz/{subject}/finish")
async def api_quiz_finish(subject: str):
    session = _get_session(subject)
    result = session.finish()
    view = _session_view(session)
    view["result"] = result.to_dict() if result else None
    return view


@app.post("/api/quiz/{subject}/restart")
async def api_quiz_restart(subject: str):
    session = _get_session(subject)
    session.restart()
    return _session_view(session)


@app.post("/api/quiz/{subject}/save")
async def api_quiz_save(subject: str):
    session = _get_session(subject)
    saved = session.save()
    view = _session_view(session)
    view["saved"] = saved
    return view


@app.post("/api/quiz/{subject}/resume")
async def api_quiz_resume(subject: str):
    session = _get_session(subject)
    resumed = session.resume()
    view = _session_view(session)
    view["resumed"] = resumed
    return view


@app.post("/api/quiz/{subject}/bookmark")
async def api_quiz_bookmark(subject: str):
    session = _get_session(subject)
    if session.current_question is None:
        raise HTTPException(409, "No current question")
    bookmarked = session.toggle_bookmark()
    if bookmarked is None:
        raise HTTPException(503, session.error)
    return {"bookmarked": bookmarked, "question_id": session.current_question.id}


# ── API: Stats ────────────────────────────────────────────────────────────

@app.get("/api/stats")
async def api_stats():
    return _stats().get_stats().to_dict()


@app.get("/api/stats/summary")
async def api_stats_summary():
    return summarize_stats(_stats().get_stats())


@app.get("/api/history")
async def api_history():
    history = _stats().get_stats().history
    return [{**r.to_dict(), "percentage": r.percentage} for r in history]


@app.get("/api/bookmarks")
async def api_bookmarks():
    return [b.to_dict() for b in _stats().get_bookmarks()]


@app.delete("/api/bookmarks/{question_id}")
async def api_remove_bookmark(question_id: str):
    if not _stats().remove_bookmark(question_id):
        raise HTTPException(404, "Bookmark not found")
    return {"ok": True}


# ── API: User ─────────────────────────────────────────────────────────────

@app.get("/api/user")
async def api_user():
    profile = read_user_profile(get_storage())
    if profile is None:
        return {"signed_in": False}
    return {
        "signed_in": True,
        "email": profile.email,
        "name": profile.name,
        "is_verified": profile.is_verified,
    }


# ── API: Settings ─────────────────────────────────────────────────────────

@app.get("/api/settings")
async def api_get_settings():
    return get_settings().to_dict()


@app.put("/api/settings")
async def api_update_settings(request: Request):
    body = await request.json()
    if not isinstance(body, dict):
        raise HTTPException(400, "Expected a JSON object")
    s = get_settings()
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    updates = {}
    for k, v in body.items():
        if k in known:
            try:
                updates[k] = coerce_setting(k, v)
            except ValueError as e:
                raise HTTPException(400, str(e))
    for k, v in updates.items():
        setattr(s, k, v)
    save_settings(s)

    # Running sessions pick up the new language, clock and provider
    for session in _active_sessions.values():
        session.language = s.quiz_language
        session.timer.interval = s.timer_tick_seconds
        session.provider = _get_provider()
    return s.to_dict()

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from narrative.api.routes_public_parts.common import _envelope, _executor
from narrative.api.schemas import WordRequest
from narrative.runtime.supported_calls import STORY_ADD_WORD_BODY, STORY_ADD_WORD_TITLE, STORY_CREATE

router = APIRouter()

Json = Dict[str, Any]


@router.get("/stories")
def stories_list(request: Request) -> Json:
    """Every story's (index, title), seed story included, in index order."""
    ex = _executor(request)
    titles = ex.get_story_titles()
    return {
        "ok": True,
        "num_stories": len(titles),
        "titles": [{"index": i, "title": t} for i, t in titles],
    }


@router.get("/stories/{story_index}")
def story_get(request: Request, story_index: int) -> Json:
    ex = _executor(request)
    return {"ok": True, "story_index": story_index, "story": ex.get_story(story_index)}


@router.post("/stories")
def story_create(request: Request, req: WordRequest) -> Json:
    ex = _executor(request)
    meta = ex.submit(_envelope(STORY_CREATE, req, {"word": req.word}))
    return {"ok": True, "story_index": int(meta["story_index"]), "receipt": meta}


@router.post("/stories/{story_index}/body")
def story_add_word_body(request: Request, story_index: int, req: WordRequest) -> Json:
    ex = _executor(request)
    meta = ex.submit(_envelope(STORY_ADD_WORD_BODY, req, {"story_index": story_index, "word": req.word}))
    return {"ok": True, "receipt": meta}


@router.post("/stories/{story_index}/title")
def story_add_word_title(request: Request, story_index: int, req: WordRequest) -> Json:
    ex = _executor(request)
    meta = ex.submit(_envelope(STORY_ADD_WORD_TITLE, req, {"story_index": story_index, "word": req.word}))
    return {"ok": True, "receipt": meta}

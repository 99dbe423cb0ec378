import uuid
from typing import Dict, List, Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from openai import OpenAI
from sitegrade.api.deps import get_settings
from sitegrade.core.config import Settings

# ---- Simple in-memory session store (MVP). Replace with DB later if needed.
_SESSIONS: Dict[str, List[Dict[str, str]]] = {}

router = APIRouter(prefix="/llm", tags=["llm"])


def get_llm_client(settings: Settings = Depends(get_settings)) -> OpenAI:
    if not settings.openai_api_key:
        raise HTTPException(status_code=503, detail="OPENAI_API_KEY not set. Put it in backend/.env or your shell.")
    return OpenAI(api_key=settings.openai_api_key)


# ---- Request models
class BootRequest(BaseModel):
    report: Dict[str, Any]                       # the report JSON returned by POST /scan
    stack_hint: Optional[Dict[str, Any]] = None  # e.g. {"server": "nginx", "framework": "django"}
    model: Optional[str] = None


class MessageRequest(BaseModel):
    session_id: str
    user_message: str
    model: Optional[str] = None


SYSTEM_PROMPT = """You are a cautious, helpful *security remediation assistant* for a website owner.
You are given a security report aggregated from SSL Labs, SecurityHeaders.com,
Mozilla Observatory, VirusTotal and Google Safe Browsing.
Constraints:
- Only give *defensive* guidance. Do not provide exploit instructions.
- Prefer *stack-aware* fixes (Nginx, Apache, Express/Helmet, Django settings, Spring Security) when possible.
- For each suggestion, include a short rationale and a *verification step* (re-run the scan or check with curl).
- Be concise; show minimum viable patch (code/config snippet).
- If the report is marked as fallback, say the findings are illustrative and suggest re-running the scan.
- If information is insufficient, ask one specific question at a time.
"""

MAX_CONTEXT_ITEMS = 12


def report_context_summary(report: Dict[str, Any], stack_hint: Optional[Dict[str, Any]]) -> str:
    vulns = report.get("vulnerabilities") or []
    lines = [
        f"Target: {report.get('url', '(unknown)')}",
        f"Scan depth: {report.get('scanDepth', '?')}",
        f"Score: {report.get('overallScore', '?')} (grade {report.get('grade', '?')})",
    ]
    if report.get("fallback"):
        lines.append("NOTE: fallback report (providers unavailable); findings are synthetic.")
    lines.append(f"Vulnerabilities ({len(vulns)}):")
    for v in vulns[:MAX_CONTEXT_ITEMS]:
        lines.append(f"- [{v.get('severity')}] {v.get('title')} ({v.get('source')})")
    if len(vulns) > MAX_CONTEXT_ITEMS:
        lines.append(f"... and {len(vulns) - MAX_CONTEXT_ITEMS} more")
    tests = report.get("testsPerformed") or []
    if tests:
        lines.append(f"Tests performed: {', '.join(tests)}")
    if stack_hint:
        lines.append(f"Stack hint: {stack_hint}")
    return "\n".join(lines)


def _complete(client: OpenAI, model: str, messages: List[Dict[str, str]]) -> str:
    try:
        resp = client.chat.completions.create(model=model, messages=messages, temperature=0.3)
        return resp.choices[0].message.content
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"OpenAI error: {e}")


@router.post("/session")
def boot_session(
    body: BootRequest,
    client: OpenAI = Depends(get_llm_client),
    settings: Settings = Depends(get_settings),
):
    """
    Create a chat session seeded with the report summary and return the
    assistant's opening message asking which vulnerability to tackle first.
    """
    session_id = str(uuid.uuid4())
    messages: List[Dict[str, str]] = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"Here is the latest security report.\n\n{report_context_summary(body.report, body.stack_hint)}\n\n"
                       f"You have all the evidence in memory. Do not ask me to paste it again."
        },
    ]

    first = _complete(client, body.model or settings.openai_model, messages + [
        {
            "role": "user",
            "content": (
                "Greet the user briefly, then ask: \"Which vulnerability would you like to tackle first?\" "
                "Offer a short numbered list of the report's vulnerabilities, most severe first. "
                "Remind them they can share their stack details (server, framework) for tailored fixes."
            )
        }
    ])

    messages.append({"role": "assistant", "content": first})
    _SESSIONS[session_id] = messages
    return {"session_id": session_id, "messages": messages, "first": first}


@router.post("/message")
def chat_message(
    body: MessageRequest,
    client: OpenAI = Depends(get_llm_client),
    settings: Settings = Depends(get_settings),
):
    """Continue a session with the user's next message."""
    if body.session_id not in _SESSIONS:
        raise HTTPException(status_code=404, detail="Unknown session_id")
    thread = _SESSIONS[body.session_id]

    thread.append({"role": "user", "content": body.user_message})
    reply = _complete(client, body.model or settings.openai_model, thread)
    thread.append({"role": "assistant", "content": reply})
    return {"session_id": body.session_id, "messages": thread, "reply": reply}

# api.py
"""
FastAPI wrapper for the change-analysis and review-fusion engine.

Exposes the deterministic analysis, the review prompt, and the fusion of an
externally produced review as a REST API. The service never calls a model
itself: callers send the reviewer's text to /review/merge.
"""

from typing import Literal

from fastapi import FastAPI
from pydantic import BaseModel, ConfigDict, Field

from review_engine.analyzer import AnalysisEngine
from review_engine.config import configure_logging, load_settings
from review_engine.fusion import fuse_review
from review_engine.models import AnalysisResult, GitChanges, ReviewResult
from review_engine.prompts import PROMPT_VERSION, build_review_prompt
from review_engine.scoring import score_verdict

VERSION = "1.0.0"

settings = load_settings()
configure_logging(settings.log_level)

engine = AnalysisEngine()

app = FastAPI(
    title="Review Engine",
    description="Deterministic change analysis fused with an external code review",
    version=VERSION,
)

# ── Request / Response models ───────────────────────────────────────────────

class MergeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    changes: GitChanges
    review_text: str = Field(..., alias="reviewText")


class PromptResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: str
    prompt_version: str = Field(..., alias="promptVersion")


class ReviewResponse(BaseModel):
    review: ReviewResult
    analysis: AnalysisResult
    verdict: Literal["pass", "warn", "fail"]


class HealthResponse(BaseModel):
    status: str
    version: str
    mode: str

# ── Helpers ─────────────────────────────────────────────────────────────────

def run_review(changes: GitChanges, review_text: str) -> ReviewResponse:
    analysis = engine.analyze_changes(changes)
    review = fuse_review(review_text, analysis, changes)
    return ReviewResponse(
        review=review,
        analysis=analysis,
        verdict=score_verdict(review.score, settings.score_pass, settings.score_warn),
    )

# ── Endpoints ───────────────────────────────────────────────────────────────

@app.get("/", response_model=HealthResponse)
def root():
    return {"status": "ok", "version": VERSION, "mode": "analysis+fusion"}


@app.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "version": VERSION, "mode": "analysis+fusion"}


@app.post("/analyze", response_model=AnalysisResult)
def analyze(changes: GitChanges):
    return engine.analyze_changes(changes)


@app.post("/review/prompt", response_model=PromptResponse)
def review_prompt(changes: GitChanges):
    analysis = engine.analyze_changes(changes)
    prompt = build_review_prompt(
        changes,
        analysis,
        review_type=settings.review_type,
        severity=settings.severity_filter,
        max_files=settings.max_files,
        max_diff_chars=settings.max_diff_chars,
    )
    return PromptResponse(prompt=prompt, prompt_version=PROMPT_VERSION)


@app.post("/review/merge", response_model=ReviewResponse)
def review_merge(request: MergeRequest):
    return run_review(request.changes, request.review_text)


DEMO_CHANGES = GitChanges(
    base_branch="main",
    current_branch="feature/login",
    files=[
        {
            "path": "src/auth/login.js",
            "status": "modified",
            "additions": 4,
            "deletions": 1,
            "patch": (
                "@@ -1,3 +1,6 @@\n"
                " import { api } from './api';\n"
                "-const user = null;\n"
                "+const password = \"hunter2\";\n"
                "+const result = eval(userInput);\n"
                "+api.login(password).then(r => console.log(r));\n"
                "+// TODO: remove debug output\n"
            ),
        },
        {
            "path": "config/settings.yaml",
            "status": "added",
            "additions": 1,
            "deletions": 0,
            "patch": "+++ b/config/settings.yaml\n+token: \"abc123\"\n",
        },
    ],
    stats={"insertions": 5, "deletions": 1, "filesChanged": 2},
)

DEMO_REVIEW_TEXT = """Here is my review:
```json
{
  "summary": "Login flow stores a credential in source and evaluates user input.",
  "issues": [
    {
      "file": "src/auth/login.js",
      "line": 3,
      "type": "security",
      "severity": "critical",
      "message": "Use of eval() can lead to code injection vulnerabilities when given user input",
      "suggestion": "Parse the input explicitly"
    }
  ],
  "suggestions": ["Move credentials to environment variables"],
  "score": 4
}
```"""


@app.get("/demo", response_model=ReviewResponse)
def demo():
    """Returns a reviewed sample change set."""
    return run_review(DEMO_CHANGES, DEMO_REVIEW_TEXT)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

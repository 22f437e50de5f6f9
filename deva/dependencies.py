"""FastAPI dependencies for per-request collaborators.

Routes never build the classifier, the Linear client or the OAuth client
themselves, so tests can swap any of them with ``app.dependency_overrides``.
"""

from typing import AsyncIterator, Callable

from fastapi import Depends

from deva.ai import AIEngine
from deva.linear import LinearService
from deva.llm_service import get_llm_service
from deva.oauth import LinearOAuth, get_oauth_settings
from deva.session import Session, require_session

LinearFactory = Callable[[str], LinearService]


def get_ai_engine() -> AIEngine:
    return AIEngine(llm_service=get_llm_service())


def get_linear_factory() -> LinearFactory:
    return LinearService


def get_linear_oauth() -> LinearOAuth:
    return LinearOAuth(get_oauth_settings())


async def get_linear_service(
    session: Session = Depends(require_session),
    factory: LinearFactory = Depends(get_linear_factory),
) -> AsyncIterator[LinearService]:
    async with factory(session.data.access_token) as service:
        yield service

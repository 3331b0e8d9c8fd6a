from collections.abc import AsyncGenerator, Generator
import os

os.environ.setdefault("TESTING", "true")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from src.auth.dependencies import (  # noqa: E402
    get_identity_provider,
    get_refresh_registry,
    get_token_codec,
)
from src.auth.identity import InMemoryIdentityProvider  # noqa: E402
from src.auth.registry import InMemoryRefreshTokenRegistry  # noqa: E402
from src.auth.tokens import TokenCodec  # noqa: E402
from src.core.utils.security import hash_password  # noqa: E402
from src.main.config import Config, IdentityUser, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.helpers.clock import FakeClock  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402
from tests.helpers.providers import ProvideValue  # noqa: E402
from tests.helpers.users import TEST_PASSWORD, TEST_USER_ID, TEST_USERNAME  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    return get_settings()


@pytest.fixture(scope="session")
def test_user() -> IdentityUser:
    # Argon2 is deliberately slow; hash once for the whole run
    return IdentityUser(
        id=TEST_USER_ID,
        username=TEST_USERNAME,
        password_hash=hash_password(TEST_PASSWORD),
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec(settings: Config, fake_clock: FakeClock) -> TokenCodec:
    return TokenCodec.from_config(settings.jwt, clock=fake_clock)


@pytest.fixture
def registry(fake_clock: FakeClock) -> InMemoryRefreshTokenRegistry:
    return InMemoryRefreshTokenRegistry(clock=fake_clock)


@pytest.fixture
def identity_provider(test_user: IdentityUser) -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider([test_user])


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    codec: TokenCodec,
    registry: InMemoryRefreshTokenRegistry,
    identity_provider: InMemoryIdentityProvider,
    settings: Config,
) -> FastAPI:
    dependency_overrides.set_many(
        {
            get_token_codec: ProvideValue(codec),
            get_refresh_registry: ProvideValue(registry),
            get_identity_provider: ProvideValue(identity_provider),
            get_settings: ProvideValue(settings),
        }
    )
    return app


def make_client(app: FastAPI) -> httpx.AsyncClient:
    # https so the Secure token cookies are sent back
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="https://testserver"
    )


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    async with make_client(app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    async with make_client(app_with_fakes) as client:
        yield client

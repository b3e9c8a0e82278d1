"""Wiring of the HTTP client and the feature stores.

One ClientContext is the explicit application state: it is built once and
handed to whatever drives the stores (the CLI, or tests).
"""

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional

from .api.client import ApiClient
from .auth import AuthApi, AuthStore
from .config import Config
from .notify import AlertStore, ToastStore
from .reading import SessionsApi, SessionStore
from .storage import KeyValueStorage
from .streaks import StreaksApi, StreakStore
from .wallet import WalletApi, WalletStore


@dataclass
class ClientContext:
    config: Config
    client: ApiClient
    storage: KeyValueStorage
    auth: AuthStore
    sessions: SessionStore
    streaks: StreakStore
    wallet: WalletStore
    alerts: AlertStore
    toasts: ToastStore


def build_context(config: Config, background: Optional[Executor] = None) -> ClientContext:
    """Create the client and every store, and restore the saved login."""
    client = ApiClient(config.api_url, timeout=config.request_timeout)
    storage = KeyValueStorage(config.storage_dir)

    auth = AuthStore(AuthApi(client), storage)
    auth.bind(client)
    auth.check_auth()

    return ClientContext(
        config=config,
        client=client,
        storage=storage,
        auth=auth,
        sessions=SessionStore(
            SessionsApi(client),
            storage=storage,
            background=background,
            page_size=config.page_size,
        ),
        streaks=StreakStore(StreaksApi(client)),
        wallet=WalletStore(WalletApi(client)),
        alerts=AlertStore(),
        toasts=ToastStore(),
    )

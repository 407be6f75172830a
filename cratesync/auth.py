from __future__ import annotations

import queue
import threading
import time
import webbrowser
from typing import Optional, Set, Union

import requests
import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse, RedirectResponse
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .console import logger
from .errors import AuthError
from .models import Credential
from .utils import random_state

Outcome = Union[Credential, AuthError]

STARTUP_POLL = 0.05

PAGE_STYLE = "font-family: Arial, sans-serif; text-align: center; padding: 50px;"


def _page(body: str) -> str:
    return f'<html><body style="{PAGE_STYLE}">{body}</body></html>'


def exchange_code(oauth: SpotifyOAuth, code: str) -> Credential:
    """Trade an authorization code for the first access/refresh token pair."""
    try:
        oauth.get_access_token(code, as_dict=False, check_cache=False)
    except (SpotifyOauthError, requests.RequestException) as err:
        raise AuthError("code_exchange_failed", str(err)) from err
    token_info = oauth.cache_handler.get_cached_token()
    if not token_info:
        raise AuthError("code_exchange_failed", "provider returned no token")
    return Credential.from_token_info(token_info)


class CallbackAcceptor:
    """Local web endpoint that captures one authorization code.

    ``/`` explains what to do, ``/login`` sends the browser to Spotify with a
    fresh state nonce and ``/callback`` validates the nonce and exchanges the
    code. The first outcome (credential or error) is handed to ``wait()``.
    """

    def __init__(self, oauth: SpotifyOAuth, host: str, port: int, callback_path: str = "/callback"):
        self.oauth = oauth
        self.host = host
        self.port = port
        self.callback_path = callback_path
        self.state: Optional[str] = None
        self.issued_states: Set[str] = set()
        self._outcome: "queue.Queue[Outcome]" = queue.Queue(maxsize=1)
        self.app = build_callback_app(self)
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def login_url(self) -> str:
        return f"http://{self.host}:{self.port}/login"

    def new_state(self) -> str:
        self.state = random_state(16)
        self.issued_states.add(self.state)
        return self.state

    def accepts_state(self, state: Optional[str]) -> bool:
        return state is not None and state in self.issued_states

    def complete(self, outcome: Outcome) -> None:
        try:
            self._outcome.put_nowait(outcome)
        except queue.Full:
            logger.debug("[dim]Ignoring extra callback; the exchange already finished.[/dim]")

    def _serve(self) -> None:
        server = self._server
        # uvicorn exits the thread with SystemExit when it cannot bind.
        try:
            server.run()
        except BaseException as err:
            logger.error(f"[red]Auth server on port {self.port} failed:[/red] {err!r}")
            self.complete(AuthError("callback_server_failed", f"could not serve on {self.host}:{self.port}"))
            return
        if not server.should_exit:
            self.complete(AuthError("callback_server_failed", "auth server stopped unexpectedly"))

    def start(self) -> None:
        """Start the server thread and block until it listens or gives up."""
        config = uvicorn.Config(self.app, host=self.host, port=self.port, log_level="warning")
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(target=self._serve, name="oauth-callback", daemon=True)
        self._thread.start()
        while self._thread.is_alive() and not self._server.started:
            self._thread.join(STARTUP_POLL)
        if self._server.started:
            logger.info(f"[cyan]Auth server listening on[/cyan] http://{self.host}:{self.port}")

    def wait(self) -> Credential:
        outcome = self._outcome.get()
        if isinstance(outcome, AuthError):
            raise outcome
        return outcome

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=5)
        self._server = None
        self._thread = None


def build_callback_app(acceptor: CallbackAcceptor) -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/", response_class=HTMLResponse)
    def index():
        return _page(
            "<h1>cratesync</h1>"
            "<p>To authenticate, please visit:</p>"
            f'<p><a href="/login">{acceptor.login_url}</a></p>'
            "<p>Make sure your Spotify app has this redirect URI registered:<br>"
            f"<code>{acceptor.oauth.redirect_uri}</code></p>"
        )

    @app.get("/login")
    def login():
        state = acceptor.new_state()
        return RedirectResponse(acceptor.oauth.get_authorize_url(state=state), status_code=302)

    @app.get(acceptor.callback_path, response_class=HTMLResponse)
    def callback(code: Optional[str] = None, state: Optional[str] = None, error: Optional[str] = None):
        if not acceptor.accepts_state(state):
            logger.error("[red]OAuth callback state does not match the login request.[/red]")
            acceptor.complete(AuthError("state_mismatch"))
            return HTMLResponse(_page("<h1>Authentication failed</h1><p>state_mismatch</p>"), status_code=400)
        if error or not code:
            reason = error or "missing_code"
            acceptor.complete(AuthError(reason))
            return HTMLResponse(_page(f"<h1>Authentication failed</h1><p>{reason}</p>"), status_code=400)
        try:
            credential = exchange_code(acceptor.oauth, code)
        except AuthError as err:
            logger.error(f"[red]Error getting token:[/red] {err}")
            acceptor.complete(err)
            return HTMLResponse(_page(f"<h1>Authentication failed</h1><p>{err}</p>"), status_code=502)
        acceptor.complete(credential)
        return _page(
            "<h1>Authentication successful!</h1>"
            "<p>You can close this window and return to the terminal.</p>"
        )

    return app


class AuthManager:
    """Owns the Spotify credential for one run.

    ``get_valid_token`` returns the current access token, refreshes it once it
    has expired, and on first use runs the interactive browser login. spotipy
    calls ``get_access_token`` before each request when this object is passed
    as its ``auth_manager``.
    """

    def __init__(
        self,
        oauth: SpotifyOAuth,
        callback_host: str = "localhost",
        callback_port: int = 3000,
        callback_path: str = "/callback",
        open_browser: bool = False,
        interactive: bool = True,
        credential: Optional[Credential] = None,
    ):
        self.oauth = oauth
        self.callback_host = callback_host
        self.callback_port = callback_port
        self.callback_path = callback_path
        self.open_browser = open_browser
        self.interactive = interactive
        self.credential = credential
        self.interactive_done = False

    def get_valid_token(self) -> str:
        credential = self.credential
        if credential is not None and credential.is_valid(time.time()):
            return credential.access_token
        if credential is not None and credential.refresh_token:
            self.credential = self._refresh(credential)
            return self.credential.access_token
        if self.interactive and not self.interactive_done:
            self.credential = self._authorize_interactively()
            return self.credential.access_token
        raise AuthError("no_credential", "No valid access token. Please authenticate first.")

    def get_access_token(self, as_dict: bool = False) -> str:
        return self.get_valid_token()

    def _refresh(self, credential: Credential) -> Credential:
        logger.info("[cyan]Refreshing access token...[/cyan]")
        try:
            token_info = self.oauth.refresh_access_token(credential.refresh_token)
        except (SpotifyOauthError, requests.RequestException) as err:
            logger.error(f"[red]Error refreshing token:[/red] {err}")
            raise AuthError("refresh_rejected", str(err)) from err
        refreshed = Credential.from_token_info(token_info, previous_refresh=credential.refresh_token)
        logger.info("[green]Access token refreshed.[/green]")
        return refreshed

    def _authorize_interactively(self) -> Credential:
        self.interactive_done = True
        acceptor = CallbackAcceptor(self.oauth, self.callback_host, self.callback_port, self.callback_path)
        acceptor.start()
        try:
            logger.info("[bold]Starting authentication.[/bold] Please open this URL in your browser:")
            logger.info(f"  {acceptor.login_url}")
            if self.open_browser:
                try:
                    webbrowser.open(acceptor.login_url)
                except webbrowser.Error:
                    logger.debug("[dim]Could not open a browser automatically.[/dim]")
            credential = acceptor.wait()
        finally:
            acceptor.stop()
        logger.info("[green]Authentication successful! Access token obtained.[/green]")
        return credential


__all__ = ["AuthManager", "CallbackAcceptor", "build_callback_app", "exchange_code"]

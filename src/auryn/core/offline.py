"""Offline cache policy.

The browser service worker is modelled here as plain functions from
(request, cache state, network) to (response, cache mutation), so the policy can
be exercised without a browser. render_service_worker() emits the JavaScript
worker from the same manifest and cache name.
"""

import json
from dataclasses import dataclass, field
from typing import Callable

from auryn.errors import CacheInstallError

CACHE_NAME = "auryn-tasks-v1"
SHELL_ASSETS = (
    "/",
    "/index.html",
    "/app.js",
    "/style.css",
    "/manifest.json",
    "/icon-192.png",
    "/icon-512.png",
)
API_PREFIX = "/api/"
OFFLINE_STATUS = 503
OFFLINE_PAYLOAD = {"error": "Offline", "offline": True}


@dataclass(frozen=True)
class Request:
    path: str
    method: str = "GET"

    @property
    def is_api(self) -> bool:
        return self.path.startswith(API_PREFIX)


@dataclass
class Response:
    status: int
    body: str | bytes = ""
    headers: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


# Raises OSError (requests.RequestException included) when the network is unreachable
Network = Callable[[Request], Response]


@dataclass
class CacheState:
    """Named cache generations, each mapping a request path to a stored response."""

    generations: dict[str, dict[str, Response]] = field(default_factory=dict)
    controls_clients: bool = False

    def match(self, request: Request) -> Response | None:
        """Look the request up across every generation, like caches.match()."""
        for entries in self.generations.values():
            if request.path in entries:
                return entries[request.path]
        return None


@dataclass
class CacheMutation:
    """Changes a policy decision wants applied to the cache state."""

    put: list[tuple[str, str, Response]] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)
    claim_clients: bool = False

    @property
    def empty(self) -> bool:
        return not self.put and not self.delete and not self.claim_clients


@dataclass
class FetchResult:
    response: Response
    mutation: CacheMutation
    from_cache: bool = False


def apply_mutation(state: CacheState, mutation: CacheMutation) -> CacheState:
    """Return a new cache state with the mutation applied."""
    generations = {name: dict(entries) for name, entries in state.generations.items()}
    for name in mutation.delete:
        generations.pop(name, None)
    for name, path, response in mutation.put:
        generations.setdefault(name, {})[path] = response
    return CacheState(
        generations=generations,
        controls_clients=state.controls_clients or mutation.claim_clients,
    )


def offline_response() -> Response:
    """Structured payload telling the caller the network is unreachable."""
    return Response(
        status=OFFLINE_STATUS,
        body=json.dumps(OFFLINE_PAYLOAD),
        headers={"Content-Type": "application/json"},
    )


def is_offline_payload(status: int, payload) -> bool:
    return status == OFFLINE_STATUS and isinstance(payload, dict) and payload.get("offline") is True


def install(network: Network, cache_name: str = CACHE_NAME, assets=SHELL_ASSETS) -> CacheMutation:
    """
    Precache every shell asset into the named generation.

    All-or-nothing: one failed asset fails the install.
    """
    mutation = CacheMutation()
    for path in assets:
        request = Request(path)
        try:
            response = network(request)
        except OSError as e:
            raise CacheInstallError(f"Failed to fetch shell asset {path}: {e}") from e
        if not response.ok:
            raise CacheInstallError(f"Shell asset {path} returned HTTP {response.status}")
        mutation.put.append((cache_name, path, response))
    return mutation


def activate(state: CacheState, cache_name: str = CACHE_NAME) -> CacheMutation:
    """Drop every other cache generation and take control of open clients."""
    stale = [name for name in state.generations if name != cache_name]
    return CacheMutation(delete=stale, claim_clients=True)


def handle_fetch(
    request: Request,
    state: CacheState,
    network: Network,
    cache_name: str = CACHE_NAME,
) -> FetchResult:
    """
    Decide how to answer one intercepted request. Always yields a response.

    API calls are network-first with a synthesized offline payload on failure;
    everything else is cache-first, populating the cache after a network miss.
    """
    if request.is_api:
        try:
            return FetchResult(network(request), CacheMutation())
        except OSError:
            return FetchResult(offline_response(), CacheMutation())

    cached = state.match(request)
    if cached is not None:
        return FetchResult(cached, CacheMutation(), from_cache=True)

    try:
        response = network(request)
    except OSError:
        return FetchResult(offline_response(), CacheMutation())

    mutation = CacheMutation()
    if request.method == "GET" and response.ok:
        mutation.put.append((cache_name, request.path, response))
    return FetchResult(response, mutation)


_WORKER_TEMPLATE = r'''const CACHE_NAME = __CACHE_NAME__;
const SHELL_ASSETS = __SHELL_ASSETS__;
const API_PREFIX = __API_PREFIX__;
const OFFLINE_STATUS = __OFFLINE_STATUS__;
const OFFLINE_PAYLOAD = __OFFLINE_PAYLOAD__;

function offlineResponse() {
  return new Response(JSON.stringify(OFFLINE_PAYLOAD), {
    status: OFFLINE_STATUS,
    headers: { 'Content-Type': 'application/json' }
  });
}

self.addEventListener('install', event => {
  event.waitUntil(caches.open(CACHE_NAME).then(cache => cache.addAll(SHELL_ASSETS)));
  self.skipWaiting();
});

self.addEventListener('activate', event => {
  event.waitUntil(
    caches.keys()
      .then(keys => Promise.all(keys.filter(k => k !== CACHE_NAME).map(k => caches.delete(k))))
      .then(() => self.clients.claim())
  );
});

self.addEventListener('fetch', event => {
  const url = new URL(event.request.url);

  if (url.pathname.startsWith(API_PREFIX)) {
    event.respondWith(fetch(event.request).catch(() => offlineResponse()));
    return;
  }

  event.respondWith(
    caches.match(event.request).then(cached => {
      if (cached) return cached;
      return fetch(event.request).then(response => {
        if (event.request.method === 'GET' && response.ok) {
          const clone = response.clone();
          caches.open(CACHE_NAME).then(cache => cache.put(event.request, clone));
        }
        return response;
      }).catch(() => offlineResponse());
    })
  );
});
'''


def render_service_worker(cache_name: str = CACHE_NAME, assets=SHELL_ASSETS) -> str:
    """Emit the browser service worker implementing this policy."""
    replacements = {
        "__CACHE_NAME__": json.dumps(cache_name),
        "__SHELL_ASSETS__": json.dumps(list(assets)),
        "__API_PREFIX__": json.dumps(API_PREFIX),
        "__OFFLINE_STATUS__": str(OFFLINE_STATUS),
        "__OFFLINE_PAYLOAD__": json.dumps(OFFLINE_PAYLOAD),
    }
    script = _WORKER_TEMPLATE
    for placeholder, value in replacements.items():
        script = script.replace(placeholder, value)
    return script

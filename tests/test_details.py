from __future__ import annotations

from types import SimpleNamespace

import pytest
import requests

from immo_watch.errors import MalformedDocumentError, UpstreamHTTPError, UpstreamTimeoutError
from immo_watch.services import DetailExtractor, RequestsPageFetcher
from immo_watch.services import details as details_module
from immo_watch.services.details import detail_headers


NEW_TEMPLATE = """
<html><body>
  <div data-testid="price-value"> € 320.000 </div>
  <div class="in-price__value">€ 999</div>
  <div data-testid="address">Via Roma 12, Padova</div>
  <div class="in-readAll"><div>Luminoso appartamento in centro.</div></div>
  <div data-testid="features">
    <dl class="im-features__list">
      <dt>Locali</dt><dd>4</dd>
      <dt>Superficie</dt><dd>110 m²</dd>
      <dt>Bagni</dt>
    </dl>
  </div>
  <div data-testid="features-others">
    <span class="im-features__tag">Balcone</span>
    <span class="im-features__tag">Cantina</span>
  </div>
  <h2>Costi</h2>
  <dl>
    <dt>Prezzo</dt><dd>€ 320.000</dd>
    <dt>Spese condominio</dt><dd>€ 120/mese</dd>
  </dl>
</body></html>
"""

OLD_TEMPLATE = """
<html><body>
  <span class="im-priceDetail__price">€ 210.000</span>
  <div class="in-location"><span>Padova</span><span>Arcella</span></div>
  <div data-testid="description">Casa con giardino.</div>
  <dl>
    <dt class="ld-featuresItem__title">Piano</dt><dd class="ld-featuresItem__description">Terra</dd>
    <dt class="ld-featuresItem__title">Locali</dt><dd class="other">5</dd>
  </dl>
  <ul><li class="ld-featuresBadges__badge"><span>Giardino privato</span></li></ul>
  <div class="ld-surfaceElement">180 m²</div>
  <dl class="in-detailFeatures">
    <dt>Spese condominio</dt><dd>nessuna</dd>
  </dl>
</body></html>
"""


def test_new_template(settings):
    detail = DetailExtractor(settings).extract(NEW_TEMPLATE)

    assert detail.price == "€ 320.000"
    assert detail.address == "Via Roma 12, Padova"
    assert detail.description == "Luminoso appartamento in centro."
    assert [(f.key, f.value) for f in detail.features] == [("Locali", "4"), ("Superficie", "110 m²")]
    assert detail.other_features == ["Balcone", "Cantina"]
    assert detail.surface == "110 m²"
    assert [(c.key, c.value) for c in detail.costs] == [
        ("Prezzo", "€ 320.000"),
        ("Spese condominio", "€ 120/mese"),
    ]


def test_old_template_falls_back(settings):
    detail = DetailExtractor(settings).extract(OLD_TEMPLATE)

    assert detail.price == "€ 210.000"
    assert detail.address == "Padova"
    assert detail.description == "Casa con giardino."
    assert [(f.key, f.value) for f in detail.features] == [("Piano", "Terra")]
    assert detail.other_features == ["Giardino privato"]
    # Not among the features, so read directly
    assert detail.surface == "180 m²"
    assert [(c.key, c.value) for c in detail.costs] == [("Spese condominio", "nessuna")]


def test_missing_everything_degrades_to_sentinels(settings):
    detail = DetailExtractor(settings).extract("<html><body><h1>Annuncio rimosso</h1></body></html>")

    assert detail.features == []
    assert detail.costs == []
    assert detail.other_features == []
    assert detail.price == detail.address == detail.description == detail.surface == "N/A"


def test_json_shape_uses_wire_names(settings):
    data = DetailExtractor(settings).extract(OLD_TEMPLATE).model_dump(by_alias=True)
    assert set(data) == {"price", "address", "description", "features", "otherFeatures", "surface", "costs"}
    assert data["features"][0] == {"key": "Piano", "value": "Terra"}


@pytest.mark.parametrize("body", ["", "   ", None])
def test_unparseable_body_raises(settings, body):
    with pytest.raises(MalformedDocumentError):
        DetailExtractor(settings).extract(body)  # type: ignore[arg-type]


def test_detail_headers_rotate_user_agent_and_set_referer(settings):
    headers = detail_headers(settings)
    assert headers["User-Agent"] in settings.user_agents
    assert headers["Referer"] == settings.vendor_url
    assert headers["Accept-Language"] == "en-US,en;q=0.5"


class FakeResponse:
    def __init__(self, status: int, text: str = "", chunks=None, encoding="utf-8") -> None:
        self.status_code = status
        self.encoding = encoding
        self.chunks = chunks if chunks is not None else [text.encode("utf-8")]
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)  # type: ignore[arg-type]

    def iter_content(self, chunk_size=1):
        yield from self.chunks

    def close(self) -> None:
        self.closed = True


def test_fetcher_returns_body(monkeypatch):
    seen = {}
    resp = FakeResponse(200, chunks=[b"<html>", "<p>€</p>".encode("utf-8"), b"</html>"])

    def fake_get(url, headers=None, timeout=None, stream=False):
        seen.update(url=url, timeout=timeout, stream=stream)
        return resp

    monkeypatch.setattr(requests, "get", fake_get)
    page = RequestsPageFetcher(timeout=7).fetch("https://www.immobiliare.it/annunci/1/", {})
    assert page.status == 200
    assert page.body == "<html><p>€</p></html>"
    assert seen["timeout"] == 7
    assert seen["stream"] is True
    assert resp.closed


def test_fetcher_propagates_upstream_status(monkeypatch):
    resp = FakeResponse(403)
    monkeypatch.setattr(requests, "get", lambda url, headers=None, timeout=None, stream=False: resp)
    with pytest.raises(UpstreamHTTPError) as info:
        RequestsPageFetcher().fetch("https://www.immobiliare.it/annunci/1/", {})
    assert info.value.status_code == 403
    assert resp.closed


def test_fetcher_timeout(monkeypatch):
    def boom(url, headers=None, timeout=None, stream=False):
        raise requests.Timeout("read timed out")

    monkeypatch.setattr(requests, "get", boom)
    with pytest.raises(UpstreamTimeoutError) as info:
        RequestsPageFetcher().fetch("https://www.immobiliare.it/annunci/1/", {})
    assert info.value.status_code == 504


def test_fetcher_gives_up_on_slow_body_after_total_deadline(monkeypatch):
    # Each chunk arrives within the per-read timeout but the whole body does not
    ticks = iter([0.0, 4.0, 8.0, 12.0])
    monkeypatch.setattr(details_module, "time", SimpleNamespace(monotonic=lambda: next(ticks)))
    resp = FakeResponse(200, chunks=[b"<html>", b"<body>", b"</body>", b"</html>"])
    monkeypatch.setattr(requests, "get", lambda url, headers=None, timeout=None, stream=False: resp)

    with pytest.raises(UpstreamTimeoutError) as info:
        RequestsPageFetcher(timeout=10).fetch("https://www.immobiliare.it/annunci/1/", {})
    assert info.value.status_code == 504
    assert resp.closed


def test_fetcher_maps_connection_drop_mid_body(monkeypatch):
    class DroppingResponse(FakeResponse):
        def iter_content(self, chunk_size=1):
            yield b"<html>"
            raise requests.ConnectionError("connection reset")

    resp = DroppingResponse(200)
    monkeypatch.setattr(requests, "get", lambda url, headers=None, timeout=None, stream=False: resp)
    with pytest.raises(UpstreamTimeoutError):
        RequestsPageFetcher().fetch("https://www.immobiliare.it/annunci/1/", {})
    assert resp.closed

import httpx

from kryptohire import ingest


def test_create_job_without_keywords_extracts_them(client, auth_headers):
    body = {
        "company_name": "Globex",
        "position_title": "Backend Engineer",
        "description": "We use Python and PostgreSQL. Python services run on Kubernetes with Docker.",
    }
    r = client.post("/api/v1/jobs", json=body, headers=auth_headers)
    assert r.status_code == 201
    keywords = r.json()["data"]["job"]["keywords"]
    assert keywords[0] == "python"
    assert {"postgresql", "kubernetes", "docker"} <= set(keywords)


def test_create_job_validates_required_fields(client, auth_headers):
    r = client.post("/api/v1/jobs", json={"company_name": "Globex"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"]["details"]["errors"]


def test_list_jobs_with_filters(client, auth_headers, job):
    client.post("/api/v1/jobs", json={
        "company_name": "Hooli",
        "position_title": "Intern",
        "description": "Summer internship",
        "work_location": "in_person",
        "employment_type": "internship",
    }, headers=auth_headers)

    r = client.get("/api/v1/jobs", headers=auth_headers)
    data = r.json()["data"]
    assert data["totalCount"] == 2
    assert data["currentPage"] == 1
    assert data["totalPages"] == 1

    r = client.get("/api/v1/jobs?workLocation=remote", headers=auth_headers)
    jobs = r.json()["data"]["jobs"]
    assert [j["company_name"] for j in jobs] == ["Globex"]

    r = client.get("/api/v1/jobs?employmentType=internship&limit=1", headers=auth_headers)
    data = r.json()["data"]
    assert [j["company_name"] for j in data["jobs"]] == ["Hooli"]
    assert data["totalPages"] == 1


def test_update_and_delete_job(client, auth_headers, job):
    r = client.patch(f"/api/v1/jobs/{job['id']}", json={"salary_range": "$150k", "is_active": False},
                     headers=auth_headers)
    assert r.status_code == 200
    updated = r.json()["data"]["job"]
    assert updated["salary_range"] == "$150k"
    assert updated["is_active"] is False
    assert updated["company_name"] == "Globex"

    assert client.delete(f"/api/v1/jobs/{job['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers).status_code == 404


def test_jobs_are_owner_filtered(client, signup, job):
    bob, _ = signup("bob@example.com")
    assert client.get(f"/api/v1/jobs/{job['id']}", headers=bob).status_code == 404
    assert client.get("/api/v1/jobs", headers=bob).json()["data"]["totalCount"] == 0


def test_import_job_from_text(client, auth_headers, fake_ai):
    r = client.post("/api/v1/jobs/import", json={"text": "Initech is hiring a Data Engineer..."},
                    headers=auth_headers)
    assert r.status_code == 201
    job = r.json()["data"]["job"]
    assert job["company_name"] == "Initech"
    assert job["keywords"] == ["spark", "airflow"]
    assert job["work_location"] == "hybrid"
    assert job["salary_range"] is None
    assert fake_ai.calls == [("format_job", "Initech is hiring a Data Engineer...")]


def _serve(monkeypatch, handler, addresses=None):
    """Send ingest traffic to `handler` and resolve hosts from `addresses` (public by default)."""
    addresses = addresses or {}

    async def resolve(host, port):
        return [addresses.get(host, "93.184.216.34")]

    real_client = httpx.AsyncClient
    monkeypatch.setattr(ingest, "resolve_addresses", resolve)
    monkeypatch.setattr(
        ingest.httpx, "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )


def test_import_job_from_url_strips_html(client, auth_headers, fake_ai, monkeypatch):
    page = "<html><head><script>var x=1;</script></head><body><nav>Menu</nav>" \
           "<main><h1>Data Engineer</h1><p>Build Spark pipelines.</p></main></body></html>"
    _serve(monkeypatch, lambda request: httpx.Response(200, text=page))

    r = client.post("/api/v1/jobs/import", json={"url": "https://jobs.example.com/123"}, headers=auth_headers)
    assert r.status_code == 201
    assert r.json()["data"]["job"]["job_url"] == "https://jobs.example.com/123"
    assert fake_ai.calls == [("format_job", "Data Engineer Build Spark pipelines.")]


def test_import_job_rejects_loopback_url(client, auth_headers, fake_ai, monkeypatch):
    seen = []
    _serve(monkeypatch, lambda request: seen.append(request) or httpx.Response(200, text="secret"),
           addresses={"127.0.0.1": "127.0.0.1", "internal.example.com": "10.0.0.5"})

    for url in ("http://127.0.0.1:8000/admin", "https://internal.example.com/jobs"):
        r = client.post("/api/v1/jobs/import", json={"url": url}, headers=auth_headers)
        assert r.status_code == 400
        assert r.json()["error"]["message"] == "Job URL must point to a public address"
    assert seen == []
    assert fake_ai.calls == []


def test_import_job_rejects_redirect_to_private_address(client, auth_headers, fake_ai, monkeypatch):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        if request.url.host == "jobs.example.com":
            return httpx.Response(302, headers={"Location": "http://169.254.169.254/latest/meta-data"})
        return httpx.Response(200, text="<main>credentials</main>")

    _serve(monkeypatch, handler, addresses={"169.254.169.254": "169.254.169.254"})
    r = client.post("/api/v1/jobs/import", json={"url": "https://jobs.example.com/123"}, headers=auth_headers)
    assert r.status_code == 400
    assert seen == ["https://jobs.example.com/123"]
    assert fake_ai.calls == []


def test_import_job_follows_public_redirects(client, auth_headers, fake_ai, monkeypatch):
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "/new"})
        return httpx.Response(200, text="<main>Moved listing</main>")

    _serve(monkeypatch, handler)
    r = client.post("/api/v1/jobs/import", json={"url": "https://jobs.example.com/old"}, headers=auth_headers)
    assert r.status_code == 201
    assert fake_ai.calls == [("format_job", "Moved listing")]


def test_import_job_stops_reading_large_pages(client, auth_headers, fake_ai, monkeypatch):
    page = "<main>" + "word " * 100000 + "</main>"
    _serve(monkeypatch, lambda request: httpx.Response(200, text=page))

    r = client.post("/api/v1/jobs/import", json={"url": "https://jobs.example.com/big"}, headers=auth_headers)
    assert r.status_code == 201
    listing = fake_ai.calls[0][1]
    assert len(listing) == ingest.MAX_LISTING_CHARS
    assert listing.startswith("word word")


def test_import_job_requires_text_or_url(client, auth_headers, fake_ai):
    r = client.post("/api/v1/jobs/import", json={}, headers=auth_headers)
    assert r.status_code == 400
    assert fake_ai.calls == []


def test_public_address_check():
    assert ingest.is_public_address("93.184.216.34")
    assert ingest.is_public_address("2606:2800:220:1:248:1893:25c8:1946")
    for value in ("127.0.0.1", "10.1.2.3", "192.168.0.10", "169.254.169.254",
                  "::1", "fe80::1%eth0", "0.0.0.0", "224.0.0.1", "not-an-ip"):
        assert not ingest.is_public_address(value), value

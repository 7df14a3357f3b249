"""
End-to-end conversion against a real Chromium.

Skipped unless RUN_PLAYWRIGHT_INTEGRATION=1 and `playwright install chromium`
has been run.
"""

import os

import pytest

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.getenv("RUN_PLAYWRIGHT_INTEGRATION") != "1",
        reason="set RUN_PLAYWRIGHT_INTEGRATION=1 to launch Chromium",
    ),
]


def test_uploaded_html_round_trips_to_pdf(client, settings):
    response = client.post(
        "/convert",
        files={"htmlFile": ("invoice.html", b"<h1>Invoice #42</h1>", "text/html")},
    )
    assert response.status_code == 200
    pdf_file = response.json()["pdfFile"]

    download = client.get(f"/download/{pdf_file}")

    assert download.status_code == 200
    assert download.content.startswith(b"%PDF-")
    assert list(settings.upload_dir.iterdir()) == []

    assert client.delete(f"/delete/{pdf_file}").status_code == 200
    assert client.get("/api/pdfs").json()["files"] == []


@pytest.mark.skipif(os.getenv("RUN_NETWORK_TESTS") != "1", reason="needs internet access")
def test_remote_url_converts(client):
    response = client.post("/convert-url", json={"url": "https://example.com"})

    assert response.status_code == 200
    data = response.json()
    assert data["sourceUrl"] == "https://example.com"
    assert data["pdfFile"].endswith(".pdf")
    assert client.get(f"/download/{data['pdfFile']}").content.startswith(b"%PDF-")

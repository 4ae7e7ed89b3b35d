import pytest

from agency_desk.core.config import clear_settings_cache

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    target = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(target))
    clear_settings_cache()
    return target


class TestUpload:
    async def test_pdf_is_stored_under_agency_directory(self, client, agent_headers, agency, upload_dir):
        response = await client.post(
            "/documents/upload",
            files={"file": ("dec page.pdf", PDF_BYTES, "application/pdf")},
            data={"type": "dec_page"},
            headers=agent_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["type"] == "dec_page"
        assert body["ai_processing_status"] == "pending"
        assert body["file_size"] == len(PDF_BYTES)
        assert body["file_path"].startswith(f"{agency.id}/")
        stored = upload_dir / body["file_path"]
        assert stored.read_bytes() == PDF_BYTES

    async def test_unknown_type_falls_back_to_other(self, client, agent_headers, upload_dir):
        response = await client.post(
            "/documents/upload",
            files={"file": ("card.png", b"\x89PNG\r\n\x1a\nfake", "image/png")},
            data={"type": "mystery"},
            headers=agent_headers,
        )

        assert response.json()["type"] == "other"

    async def test_disallowed_mime_type(self, client, agent_headers, upload_dir):
        response = await client.post(
            "/documents/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=agent_headers,
        )

        assert response.status_code == 400
        assert not upload_dir.exists() or not any(upload_dir.rglob("*.txt"))

    async def test_oversized_file(self, client, agent_headers, upload_dir, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "16")
        clear_settings_cache()

        response = await client.post(
            "/documents/upload",
            files={"file": ("big.pdf", PDF_BYTES, "application/pdf")},
            headers=agent_headers,
        )

        assert response.status_code == 400
        assert "too large" in response.json()["detail"]

    async def test_delete_removes_file(self, client, agent_headers, upload_dir):
        created = await client.post(
            "/documents/upload",
            files={"file": ("id.jpg", b"\xff\xd8\xffjpeg", "image/jpeg")},
            headers=agent_headers,
        )
        document = created.json()
        stored = upload_dir / document["file_path"]
        assert stored.exists()

        response = await client.delete(f"/documents/{document['id']}", headers=agent_headers)

        assert response.status_code == 204
        assert not stored.exists()


class TestMetadata:
    async def test_create_filter_and_update(self, client, agent_headers, agency, make_client):
        owner = await make_client(agency)
        created = await client.post(
            "/documents",
            json={"name": "Auto ID card", "type": "id_card", "file_path": "external/id-card.pdf", "client_id": owner.id},
            headers=agent_headers,
        )
        assert created.status_code == 201
        document = created.json()
        assert document["client"]["display_name"] == "Mei Chen"

        by_type = await client.get("/documents", params={"type": "id_card"}, headers=agent_headers)
        assert by_type.json()["total"] == 1
        pending = await client.get("/documents", params={"ai_status": "pending"}, headers=agent_headers)
        assert pending.json()["total"] == 1

        updated = await client.patch(
            f"/documents/{document['id']}",
            json={"ai_processing_status": "completed", "ai_extracted_data": {"vin": "1HGCM82633A004352"}},
            headers=agent_headers,
        )
        assert updated.json()["ai_extracted_data"] == {"vin": "1HGCM82633A004352"}

    async def test_documents_are_scoped_to_agency(self, client, agent_headers, other_agency, make_user, headers_for):
        stranger = await make_user(other_agency, email="stranger@bayarea-brokers.com")
        created = await client.post(
            "/documents",
            json={"name": "Private", "file_path": "x/private.pdf"},
            headers=headers_for(stranger),
        )

        response = await client.get(f"/documents/{created.json()['id']}", headers=agent_headers)

        assert response.status_code == 404


class TestStoredFileSafety:
    @pytest.mark.parametrize(
        "file_path",
        ["/etc/passwd", "../outside.pdf", "policies/../../outside.pdf", "C:\\evil.pdf", "\\\\server\\share\\x.pdf"],
    )
    async def test_paths_escaping_upload_dir_are_rejected(self, client, agent_headers, file_path):
        response = await client.post(
            "/documents",
            json={"name": "Escape", "file_path": file_path},
            headers=agent_headers,
        )

        assert response.status_code == 422

    async def test_absolute_path_to_existing_file_is_never_registered(self, client, agent_headers, tmp_path):
        victim = tmp_path / "victim.txt"
        victim.write_text("keep me")

        response = await client.post(
            "/documents",
            json={"name": "Victim", "file_path": str(victim)},
            headers=agent_headers,
        )

        assert response.status_code == 422
        assert victim.exists()

    async def test_delete_keeps_other_agency_upload(
        self, client, agent_headers, other_agency, make_user, headers_for, upload_dir
    ):
        stranger = await make_user(other_agency, email="stranger@bayarea-brokers.com")
        uploaded = await client.post(
            "/documents/upload",
            files={"file": ("loss-run.pdf", PDF_BYTES, "application/pdf")},
            headers=headers_for(stranger),
        )
        foreign_path = uploaded.json()["file_path"]
        assert foreign_path.startswith(f"{other_agency.id}/")

        registered = await client.post(
            "/documents",
            json={"name": "Borrowed", "file_path": foreign_path},
            headers=agent_headers,
        )
        assert registered.status_code == 201

        response = await client.delete(f"/documents/{registered.json()['id']}", headers=agent_headers)

        assert response.status_code == 204
        assert (upload_dir / foreign_path).read_bytes() == PDF_BYTES

    async def test_delete_keeps_file_outside_agency_directory(self, client, agent_headers, upload_dir):
        shared = upload_dir / "shared" / "carrier-guide.pdf"
        shared.parent.mkdir(parents=True)
        shared.write_bytes(PDF_BYTES)
        registered = await client.post(
            "/documents",
            json={"name": "Carrier guide", "file_path": "shared/carrier-guide.pdf"},
            headers=agent_headers,
        )

        response = await client.delete(f"/documents/{registered.json()['id']}", headers=agent_headers)

        assert response.status_code == 204
        assert shared.exists()


class TestUploadSizeLimit:
    async def test_file_at_the_limit_is_accepted(self, client, agent_headers, upload_dir, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "16")
        clear_settings_cache()

        at_limit = await client.post(
            "/documents/upload",
            files={"file": ("exact.pdf", b"%PDF" + b"0" * 12, "application/pdf")},
            headers=agent_headers,
        )
        over_limit = await client.post(
            "/documents/upload",
            files={"file": ("over.pdf", b"%PDF" + b"0" * 13, "application/pdf")},
            headers=agent_headers,
        )

        assert at_limit.status_code == 201
        assert at_limit.json()["file_size"] == 16
        assert over_limit.status_code == 400
        assert not any(upload_dir.rglob("*over.pdf"))

"""HTTP surface of /transcriptions."""

from fastapi import status

from voxnote.services.pipeline import IngestionPipeline

from conftest import FakeEnricher, FakeTranscriber


def _upload(client, data: bytes = b"fake audio", filename: str = "meeting.mp3", **form):
    files = {"file": (filename, data, "audio/mpeg")}
    return client.post("/transcriptions", files=files, data=form)


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_with_unreachable_enrichment(client, pipeline) -> None:
    pipeline.transcriber = FakeTranscriber(text="hello world")
    pipeline.enricher = FakeEnricher(error=ConnectionError("unreachable"))

    response = _upload(client, name="Standup")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["text"] == "hello world"
    assert body["formattedText"] == "hello world"
    record = body["record"]
    assert record["name"] == "Standup"
    assert record["description"] is None
    assert record["text"] == "hello world"
    assert record["formattedText"] == "hello world"
    assert record["originalName"] == "meeting.mp3"
    assert record["filename"].endswith("-meeting.mp3")
    assert record["id"]
    assert record["createdAt"]


def test_upload_sanitizes_stored_filename(client, pipeline) -> None:
    response = _upload(client, filename="my talk (final).mp3")

    assert response.status_code == 200
    record = response.json()["record"]
    assert record["originalName"] == "my talk (final).mp3"
    assert record["filename"].endswith("-my_talk__final_.mp3")
    assert pipeline.blob_store.path_for(record["filename"]).read_bytes() == b"fake audio"


def test_upload_without_file(client) -> None:
    response = client.post("/transcriptions", data={"name": "x"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "No file provided"}


def test_upload_empty_file(client) -> None:
    response = _upload(client, data=b"")
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_upload_without_configuration(client, pipeline) -> None:
    pipeline.transcriber = None
    response = _upload(client)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert "not configured" in response.json()["error"]


def test_upload_transcription_failure(client, pipeline) -> None:
    pipeline.transcriber = FakeTranscriber(error=RuntimeError("Invalid file format."))

    response = _upload(client)

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Invalid file format."}
    assert client.get("/transcriptions").json()["meta"]["total"] == 0


def test_history_listing_and_meta(client) -> None:
    for i in range(3):
        assert _upload(client, filename=f"clip{i}.mp3").status_code == 200

    response = client.get("/transcriptions", params={"page": 2, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"total": 3, "page": 2, "limit": 2, "totalPages": 2}
    assert len(body["data"]) == 1
    assert body["data"][0]["originalName"] == "clip0.mp3"


def test_history_invalid_paging_falls_back_to_defaults(client) -> None:
    _upload(client)

    response = client.get("/transcriptions", params={"page": "abc", "limit": "-4"})

    assert response.status_code == 200
    assert response.json()["meta"] == {"total": 1, "page": 1, "limit": 10, "totalPages": 1}


def test_history_search(client, pipeline) -> None:
    _upload(client, name="Budget planning")
    _upload(client, name="Standup")

    body = client.get("/transcriptions", params={"q": "Budget"}).json()

    assert body["meta"]["total"] == 1
    assert body["data"][0]["name"] == "Budget planning"


def test_read_single_record(client) -> None:
    record = _upload(client, name="Standup").json()["record"]

    response = client.get(f"/transcriptions/{record['id']}")

    assert response.status_code == 200
    assert response.json()["name"] == "Standup"
    assert client.get("/transcriptions/unknown").status_code == status.HTTP_404_NOT_FOUND


def test_delete_then_not_found(client) -> None:
    record = _upload(client).json()["record"]

    first = client.delete(f"/transcriptions/{record['id']}")
    second = client.delete(f"/transcriptions/{record['id']}")

    assert first.status_code == 200
    assert first.json() == {"success": True}
    assert second.status_code == status.HTTP_404_NOT_FOUND
    assert "error" in second.json()
    assert client.get("/transcriptions").json()["data"] == []


def test_delete_without_id(client) -> None:
    response = client.delete("/transcriptions")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "ID is required"}


def test_pipeline_dependency_is_injected(client, pipeline) -> None:
    assert isinstance(pipeline, IngestionPipeline)
    _upload(client)
    assert len(pipeline.transcriber.calls) == 1

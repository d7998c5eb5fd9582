"""Tests for the upload pipeline orchestrator

Run with pytest from project root:
    pytest tests/test_upload_pipeline.py -v
"""

import json

from conftest import FakePublisher, make_draft, write_asset

from managers.errors import QuotaExhaustedError, StorageError
from models.run import AssetState


def read_json(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class TestUploadPipelineRun:
    """Tests for a single pipeline run"""

    def test_uploads_image_then_metadata(self, layout, make_pipeline, publisher):
        """Test a fresh asset is pinned twice and recorded in both outputs"""
        write_asset(layout, "1.png", make_draft("1"))

        report = make_pipeline(publisher).run()

        assert report.ok
        assert publisher.blob_calls == ["OnyxAI-Image-1"]
        assert publisher.document_calls == ["OnyxAI-Metadata-1"]
        image_uri = read_json(layout["image_cache"])["1"]
        token_uri = read_json(layout["metadata_cache"])["1"]
        assert read_json(layout["token_uri_map"]) == {"1": token_uri}
        assert read_json(layout["results"]) == [{"id": "1", "imageURI": image_uri, "tokenURI": token_uri}]
        assert report.outputs_written is True

    def test_asset_passes_through_every_state(self, layout, make_pipeline, publisher, caplog):
        """Test a completed asset reaches METADATA_PUBLISHED before RECORDED"""
        write_asset(layout, "1.png", make_draft("1"))

        with caplog.at_level("DEBUG", logger="CollectionUploader"):
            make_pipeline(publisher).run()

        states = [record.getMessage() for record in caplog.records if record.getMessage().startswith("[1] ")]
        assert states.index(f"[1] {AssetState.METADATA_PUBLISHED.value}") < states.index(f"[1] {AssetState.RECORDED.value}")

    def test_metadata_references_published_image(self, layout, make_pipeline, publisher):
        """Test the pinned metadata document points at the pinned image"""
        write_asset(layout, "7.png", make_draft("7", subject="lion"))

        make_pipeline(publisher).run()

        image_uri = read_json(layout["image_cache"])["7"]
        document = publisher.documents[read_json(layout["metadata_cache"])["7"]]
        assert document["image"] == image_uri
        assert document["name"] == "OnyxAI #7"
        assert document["attributes"][0] == {"trait_type": "Subject", "value": "lion"}
        assert document["attributes"][-2:] == [
            {"trait_type": "Generation ID", "value": "7"},
            {"trait_type": "Network", "value": "Sepolia Testnet"},
        ]

    def test_processes_assets_in_lexicographic_order(self, layout, make_pipeline, publisher):
        """Test 10.png, 2.png, 1.png are processed as 1, 10, 2"""
        for identifier in ("10", "2", "1"):
            write_asset(layout, f"{identifier}.png", make_draft(identifier))

        report = make_pipeline(publisher).run()

        assert [result.id for result in report.results] == ["1", "10", "2"]
        assert publisher.blob_calls == ["OnyxAI-Image-1", "OnyxAI-Image-10", "OnyxAI-Image-2"]
        assert [entry["id"] for entry in read_json(layout["results"])] == ["1", "10", "2"]
        assert list(read_json(layout["token_uri_map"])) == ["1", "10", "2"]

    def test_reuses_cached_image_reference(self, layout, make_pipeline, publisher):
        """Test a cached image is not re-uploaded but metadata still is"""
        write_asset(layout, "3.png", make_draft("3"))
        layout["image_cache"].write_text(json.dumps({"3": "ipfs://already-there"}))

        report = make_pipeline(publisher).run()

        assert publisher.blob_calls == []
        assert publisher.document_calls == ["OnyxAI-Metadata-3"]
        assert report.images_reused == 1
        assert report.results[0].image_uri == "ipfs://already-there"
        document = publisher.documents[report.results[0].token_uri]
        assert document["image"] == "ipfs://already-there"


class TestSkipping:
    """Tests for skipped inputs"""

    def test_skips_non_numeric_filename(self, layout, make_pipeline, publisher):
        """Test a malformed identifier never reaches caches or outputs"""
        write_asset(layout, "1.png", make_draft("1"))
        write_asset(layout, "hero.png", make_draft("1"))
        write_asset(layout, "12a.png")

        report = make_pipeline(publisher).run()

        assert report.ok
        assert [skip.filename for skip in report.skipped] == ["12a.png", "hero.png"]
        assert {skip.reason for skip in report.skipped} == {"invalid_identifier"}
        assert list(read_json(layout["image_cache"])) == ["1"]
        assert list(read_json(layout["metadata_cache"])) == ["1"]
        assert list(read_json(layout["token_uri_map"])) == ["1"]
        assert publisher.calls == 2

    def test_skips_non_ascii_digit_filename(self, layout, make_pipeline, publisher):
        """Test Unicode digits in a filename are not treated as an identifier"""
        write_asset(layout, "1.png", make_draft("1"))
        write_asset(layout, "١.png", {"tokenId": 1, "attributes": []})

        report = make_pipeline(publisher).run()

        assert report.ok
        assert [(skip.filename, skip.reason) for skip in report.skipped] == [("١.png", "invalid_identifier")]
        assert list(read_json(layout["image_cache"])) == ["1"]
        assert list(read_json(layout["token_uri_map"])) == ["1"]
        assert publisher.calls == 2

    def test_skips_asset_without_draft(self, layout, make_pipeline, publisher):
        """Test an asset lacking a companion draft is fully excluded"""
        write_asset(layout, "1.png", make_draft("1"))
        write_asset(layout, "2.png")

        report = make_pipeline(publisher).run()

        assert report.ok
        assert [(skip.filename, skip.reason) for skip in report.skipped] == [("2.png", "missing_descriptor")]
        assert "2" not in read_json(layout["image_cache"])
        assert "2" not in read_json(layout["token_uri_map"])
        assert all(entry["id"] != "2" for entry in read_json(layout["results"]))

    def test_no_payloads_is_fatal(self, layout, make_pipeline, publisher):
        """Test an empty payload directory aborts without writing outputs"""
        report = make_pipeline(publisher).run()

        assert not report.ok
        assert report.error.error_code == "NO_PAYLOADS"
        assert not layout["token_uri_map"].exists()


class TestIdempotence:
    """Tests for repeated runs"""

    def test_second_run_publishes_nothing(self, layout, make_pipeline):
        """Test a rerun on unchanged inputs makes zero publish calls and identical documents"""
        for identifier in ("1", "2", "3"):
            write_asset(layout, f"{identifier}.png", make_draft(identifier))

        first = FakePublisher()
        assert make_pipeline(first).run().ok
        snapshot = {name: layout[name].read_text() for name in ("image_cache", "metadata_cache", "token_uri_map", "results")}

        second = FakePublisher()
        report = make_pipeline(second).run()

        assert report.ok
        assert second.calls == 0
        assert report.publish_calls == 0
        assert report.images_reused == 3
        assert report.metadata_reused == 3
        for name, content in snapshot.items():
            assert layout[name].read_text() == content


class TestFatalAbort:
    """Tests for aborting and resuming runs"""

    def test_failure_on_second_asset_aborts_run(self, layout, make_pipeline, transport_error):
        """Test asset 1 stays cached, no outputs are written, assets 2 and 3 are unprocessed"""
        for identifier in ("1", "2", "3"):
            write_asset(layout, f"{identifier}.png", make_draft(identifier))
        publisher = FakePublisher(fail_on={"OnyxAI-Image-2": transport_error})

        report = make_pipeline(publisher).run()

        assert not report.ok
        assert report.error is transport_error
        assert report.failed_id == "2"
        assert report.failed_state == AssetState.PENDING
        assert read_json(layout["image_cache"]) == {"1": publisher_image_ref(layout, "1")}
        assert list(read_json(layout["metadata_cache"])) == ["1"]
        assert not layout["token_uri_map"].exists()
        assert not layout["results"].exists()
        assert publisher.blob_calls == ["OnyxAI-Image-1", "OnyxAI-Image-2"]
        assert "OnyxAI-Metadata-3" not in publisher.document_calls

    def test_failed_run_keeps_previous_outputs(self, layout, make_pipeline):
        """Test outputs from an earlier successful run survive a failed run"""
        write_asset(layout, "1.png", make_draft("1"))
        assert make_pipeline(FakePublisher()).run().ok
        previous = layout["token_uri_map"].read_text()

        write_asset(layout, "2.png", make_draft("2"))
        failing = FakePublisher(fail_on={"OnyxAI-Metadata-2": QuotaExhaustedError("402 Payment Required", status_code=402)})
        report = make_pipeline(failing).run()

        assert report.error.error_code == "QUOTA_EXHAUSTED"
        assert report.failed_state == AssetState.IMAGE_PUBLISHED
        assert layout["token_uri_map"].read_text() == previous
        assert "2" in read_json(layout["image_cache"])
        assert "2" not in read_json(layout["metadata_cache"])

    def test_resume_publishes_only_remaining_work(self, layout, make_pipeline, transport_error):
        """Test a rerun after an abort skips the N finished assets and completes the rest"""
        for identifier in ("1", "2", "3", "4"):
            write_asset(layout, f"{identifier}.png", make_draft(identifier))
        failing = FakePublisher(fail_on={"OnyxAI-Metadata-3": transport_error})
        assert not make_pipeline(failing).run().ok

        resumed = FakePublisher()
        report = make_pipeline(resumed).run()

        assert report.ok
        assert resumed.blob_calls == ["OnyxAI-Image-4"]
        assert resumed.document_calls == ["OnyxAI-Metadata-3", "OnyxAI-Metadata-4"]
        assert report.images_reused == 3
        assert report.metadata_reused == 2
        assert list(read_json(layout["token_uri_map"])) == ["1", "2", "3", "4"]

    def test_malformed_cache_aborts_before_publishing(self, layout, make_pipeline, publisher):
        """Test an unreadable cache document is fatal and is not overwritten"""
        write_asset(layout, "1.png", make_draft("1"))
        layout["image_cache"].write_text("{not json")

        report = make_pipeline(publisher).run()

        assert isinstance(report.error, StorageError)
        assert publisher.calls == 0
        assert layout["image_cache"].read_text() == "{not json"

    def test_cache_write_failure_is_fatal(self, layout, make_pipeline, publisher, monkeypatch):
        """Test a failed cache persist aborts the run after the publish call"""
        write_asset(layout, "1.png", make_draft("1"))

        def fail_write(path, data):
            raise StorageError(f"Failed to write {path}: disk full", path=path)

        monkeypatch.setattr("managers.upload_cache.write_json_atomic", fail_write)
        report = make_pipeline(publisher).run()

        assert isinstance(report.error, StorageError)
        assert report.failed_id == "1"
        assert report.failed_state == AssetState.PENDING
        assert not layout["results"].exists()


def publisher_image_ref(layout, identifier):
    size = (layout["images"] / f"{identifier}.png").stat().st_size
    return f"ipfs://img-{identifier}-{size}"

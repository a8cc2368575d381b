"""Unit tests for Delivery: object storage, FTP and cleanup."""

import pytest

from pipeline.core.config import PDF_CONTENT_TYPE
from pipeline.core.exceptions import ExternalServiceError, UploadError, UploadKind
from pipeline.models.dto import (
    FtpTarget,
    MergedArtifact,
    ObjectStorageTarget,
    Sidecar,
)
from pipeline.processors.delivery import Delivery, cleanup_references, cleanup_required

ARTIFACT = MergedArtifact(data=b"%PDF-1.7 merged", page_count=4)


def ftp_target(**overrides):
    values = {
        "host": "ftp.printer.test",
        "user": "printer",
        "password": "s3cret",
        "filename": "order_42.pdf",
    }
    values.update(overrides)
    return FtpTarget(**values)


class TestCleanupRequired:
    """Tests for the cleanup policy per target."""

    def test_ftp_always_cleans_up(self):
        """Test FTP deliveries always remove sources."""
        assert cleanup_required(ftp_target()) is True

    def test_storage_cleans_up_only_when_asked(self):
        """Test storage deliveries keep sources by default."""
        assert cleanup_required(ObjectStorageTarget(path="temp/1/merged_a4.pdf")) is False
        assert (
            cleanup_required(
                ObjectStorageTarget(path="temp/1/merged_a4.pdf", cleanup_sources=True)
            )
            is True
        )

    def test_storage_cleanup_excludes_artifact_path(self):
        """Test the artifact path is never among the sources to remove."""
        target = ObjectStorageTarget(path="temp/1/merged_a4.pdf", cleanup_sources=True)

        refs = cleanup_references(target, ["temp/1/merged_a4.pdf", "batches/b.pdf"])

        assert refs == ("batches/b.pdf",)

    def test_ftp_cleanup_keeps_every_reference(self):
        """Test FTP deliveries remove all sources."""
        refs = cleanup_references(ftp_target(), ["batches/a.pdf", "batches/b.pdf"])

        assert refs == ("batches/a.pdf", "batches/b.pdf")


class TestStorageDelivery:
    """Tests for writing the artifact back to the bucket."""

    def test_upload_writes_artifact(self, storage):
        """Test the artifact lands at the target path with PDF content type."""
        result = Delivery(storage).deliver(ARTIFACT, ObjectStorageTarget(path="temp/42/merged_a4.pdf"))

        assert storage.objects["temp/42/merged_a4.pdf"] == ARTIFACT.data
        assert storage.uploads == [("temp/42/merged_a4.pdf", PDF_CONTENT_TYPE, ARTIFACT.size)]
        assert result.destination == "temp/42/merged_a4.pdf"
        assert result.size == ARTIFACT.size
        assert result.page_count == 4
        assert result.target_kind == "object_storage"
        assert result.cleanup_warnings == ()

    def test_existing_artifact_overwritten(self, storage):
        """Test a second delivery to the same path replaces the first."""
        storage.objects["temp/42/merged_a4.pdf"] = b"old"

        Delivery(storage).deliver(ARTIFACT, ObjectStorageTarget(path="temp/42/merged_a4.pdf"))

        assert storage.objects["temp/42/merged_a4.pdf"] == ARTIFACT.data

    def test_upload_failure_raises_upload_error(self, storage):
        """Test storage write failures become UploadError."""
        storage.upload_error = ConnectionError("connection refused")

        with pytest.raises(UploadError) as exc_info:
            Delivery(storage).deliver(ARTIFACT, ObjectStorageTarget(path="temp/42/merged_a4.pdf"))

        error = exc_info.value
        assert error.target == "object_storage"
        assert error.kind is UploadKind.PRIMARY
        assert error.details["stage"] == "deliver"
        assert error.http_status == 502

    def test_unknown_target_rejected(self, storage):
        """Test unsupported targets raise TypeError."""
        with pytest.raises(TypeError):
            Delivery(storage).deliver(ARTIFACT, "ftp://somewhere")


class TestFtpDelivery:
    """Tests for FTP delivery with optional sidecar."""

    def test_pdf_only(self, storage, ftp):
        """Test the PDF is uploaded and the session closed gracefully."""
        result = Delivery(storage, ftp).deliver(ARTIFACT, ftp_target())

        session = ftp.session
        assert session.files == {"order_42.pdf": ARTIFACT.data}
        assert session.closed == "graceful"
        assert result.destination == "order_42.pdf"
        assert result.target_kind == "ftp"
        assert result.sidecar_delivered is False
        assert result.sidecar_filename is None

    def test_connection_parameters_passed_through(self, storage, ftp):
        """Test host, credentials, port and TLS flag reach the connector."""
        Delivery(storage, ftp).deliver(ARTIFACT, ftp_target(port=2121, secure=True))

        assert ftp.connections == [
            {
                "host": "ftp.printer.test",
                "user": "printer",
                "password": "s3cret",
                "port": 2121,
                "secure": True,
            }
        ]

    def test_pdf_and_sidecar(self, storage, ftp):
        """Test the sidecar is uploaded after the PDF in the same session."""
        target = ftp_target(sidecar=Sidecar(content="<order id='42'/>", filename="order_42.xml"))

        result = Delivery(storage, ftp).deliver(ARTIFACT, target)

        session = ftp.session
        assert session.attempts == ["order_42.pdf", "order_42.xml"]
        assert session.files["order_42.xml"] == "<order id='42'/>".encode("utf-8")
        assert result.sidecar_delivered is True
        assert result.sidecar_filename == "order_42.xml"
        assert len(ftp.sessions) == 1

    def test_sidecar_encoded_as_utf8(self, storage, ftp):
        """Test non-ASCII sidecar content is sent as UTF-8."""
        target = ftp_target(sidecar=Sidecar(content="<name>Müller</name>", filename="o.xml"))

        Delivery(storage, ftp).deliver(ARTIFACT, target)

        assert ftp.session.files["o.xml"] == "<name>Müller</name>".encode("utf-8")

    def test_primary_failure_skips_sidecar(self, storage, make_ftp):
        """Test a failed PDF upload aborts before the sidecar."""
        ftp = make_ftp(fail_on={"order_42.pdf"})
        target = ftp_target(sidecar=Sidecar(content="<x/>", filename="order_42.xml"))

        with pytest.raises(UploadError) as exc_info:
            Delivery(storage, ftp).deliver(ARTIFACT, target)

        assert exc_info.value.kind is UploadKind.PRIMARY
        assert exc_info.value.target == "ftp"
        assert ftp.session.attempts == ["order_42.pdf"]
        assert ftp.session.closed == "forced"

    def test_sidecar_failure_fails_delivery(self, storage, make_ftp):
        """Test a failed sidecar upload is a failed delivery."""
        ftp = make_ftp(fail_on={"order_42.xml"})
        target = ftp_target(sidecar=Sidecar(content="<x/>", filename="order_42.xml"))

        with pytest.raises(UploadError) as exc_info:
            Delivery(storage, ftp).deliver(ARTIFACT, target)

        error = exc_info.value
        assert error.kind is UploadKind.SIDECAR
        assert error.destination == "order_42.xml"
        assert error.details["kind"] == "sidecar"
        assert ftp.session.closed == "forced"

    def test_sidecar_encode_failure_before_connect(self, storage, ftp):
        """Test unencodable sidecar content fails without opening a session."""
        target = ftp_target(
            sidecar=Sidecar(content="<name>Müller</name>", filename="o.xml", encoding="ascii")
        )

        with pytest.raises(UploadError) as exc_info:
            Delivery(storage, ftp).deliver(ARTIFACT, target)

        assert exc_info.value.phase == "encode"
        assert exc_info.value.kind is UploadKind.SIDECAR
        assert ftp.connections == []

    def test_connect_failure(self, storage, make_ftp):
        """Test login failures surface as UploadError in the connect phase."""
        ftp = make_ftp(connect_error=ConnectionRefusedError("refused"))

        with pytest.raises(UploadError) as exc_info:
            Delivery(storage, ftp).deliver(ARTIFACT, ftp_target())

        assert exc_info.value.phase == "connect"
        assert exc_info.value.message == "FTP upload failed: order_42.pdf"

    def test_missing_connector(self, storage):
        """Test FTP targets need a connector."""
        with pytest.raises(ExternalServiceError) as exc_info:
            Delivery(storage).deliver(ARTIFACT, ftp_target())

        assert exc_info.value.http_status == 503


class TestCleanup:
    """Tests for best-effort source removal."""

    def test_cleanup_removes_all_sources(self, storage):
        """Test successful cleanup returns no warnings."""
        warnings = Delivery(storage).cleanup(["batches/a.pdf", "batches/b.pdf"])

        assert warnings == ()
        assert storage.removed == [["batches/a.pdf", "batches/b.pdf"]]
        assert "batches/a.pdf" not in storage.objects
        assert "batches/c.pdf" in storage.objects

    def test_partial_failure_reports_failed_paths(self, storage):
        """Test undeleted keys come back as one warning."""
        storage.remove_failures = {"batches/b.pdf"}

        warnings = Delivery(storage).cleanup(["batches/a.pdf", "batches/b.pdf"])

        assert len(warnings) == 1
        assert warnings[0].paths == ("batches/b.pdf",)
        assert "1 of 2" in warnings[0].message

    def test_remove_exception_never_raises(self, storage):
        """Test a storage outage during cleanup yields a warning, not an error."""
        storage.remove_error = ConnectionError("storage down")

        warnings = Delivery(storage).cleanup(["batches/a.pdf", "batches/b.pdf"])

        assert warnings[0].paths == ("batches/a.pdf", "batches/b.pdf")
        assert warnings[0].message == "storage down"

    def test_cleanup_of_nothing(self, storage):
        """Test an empty list makes no storage call."""
        assert Delivery(storage).cleanup([]) == ()
        assert storage.removed == []

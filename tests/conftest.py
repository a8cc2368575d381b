"""Shared fixtures: generated PDFs, in-memory storage and FTP fakes."""

import ftplib
import io
import os

# Settings are read at import time; provide a complete test environment first.
os.environ.setdefault("S3_ENDPOINT", "minio.test:9000")
os.environ.setdefault("S3_ACCESS_KEY", "test-access")
os.environ.setdefault("S3_SECRET_KEY", "test-secret-key")
os.environ.setdefault("S3_BUCKET", "print-queue")
os.environ.setdefault("MERGE_API_SECRET", "test-api-secret")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from pypdf import PdfReader, PdfWriter

from pipeline.processors.pdf_composer import PdfComposer


class FakeS3Error(Exception):
    """Stands in for minio.error.S3Error: carries an S3 error code."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code


class FakeStorage:
    """In-memory bucket recording every call."""

    def __init__(self, objects=None, events=None):
        self.bucket = "print-queue"
        self.objects = dict(objects or {})
        self.events = events if events is not None else []
        self.downloads = []
        self.uploads = []
        self.removed = []
        self.download_errors = {}
        self.upload_error = None
        self.remove_error = None
        self.remove_failures = set()
        self.healthy = True

    def download(self, path):
        self.downloads.append(path)
        self.events.append(("download", path))
        if path in self.download_errors:
            raise self.download_errors[path]
        if path not in self.objects:
            raise FakeS3Error("NoSuchKey", f"{path} does not exist")
        return self.objects[path]

    def upload(self, path, data, content_type, overwrite=True):
        if self.upload_error is not None:
            raise self.upload_error
        if not overwrite and path in self.objects:
            raise FileExistsError(path)
        self.uploads.append((path, content_type, len(data)))
        self.objects[path] = data

    def remove(self, paths):
        paths = list(paths)
        self.removed.append(paths)
        if self.remove_error is not None:
            raise self.remove_error
        failed = [p for p in paths if p in self.remove_failures]
        for path in paths:
            if path not in failed:
                self.objects.pop(path, None)
        return failed

    def health_check(self):
        return {"healthy": self.healthy, "error": None if self.healthy else "down"}


class FakeFtpSession:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.files = {}
        self.attempts = []
        self.closed = None

    def upload_stream(self, data, remote_filename):
        self.attempts.append(remote_filename)
        if remote_filename in self.fail_on:
            raise ftplib.error_perm(f"553 Could not create file {remote_filename}")
        self.files[remote_filename] = data

    def close(self, graceful=True):
        self.closed = "graceful" if graceful else "forced"


class FakeFtpConnector:
    def __init__(self, fail_on=(), connect_error=None):
        self.fail_on = fail_on
        self.connect_error = connect_error
        self.connections = []
        self.sessions = []

    def connect(self, host, user, password, port=21, secure=False):
        self.connections.append(
            {"host": host, "user": user, "password": password, "port": port, "secure": secure}
        )
        if self.connect_error is not None:
            raise self.connect_error
        session = FakeFtpSession(self.fail_on)
        self.sessions.append(session)
        return session

    @property
    def session(self):
        return self.sessions[-1]


class TrackingComposer(PdfComposer):
    """PdfComposer that counts resident parsed documents."""

    def __init__(self, events=None):
        super().__init__()
        self.events = events if events is not None else []
        self.live = 0
        self.peak = 0

    def parse(self, data, *, writable=False, reference=None):
        document = super().parse(data, writable=writable, reference=reference)
        self.live += 1
        self.peak = max(self.peak, self.live)
        self.events.append(("parse", reference))
        return document

    def release(self, document):
        if not document.released:
            self.live -= 1
        self.events.append(("release", document.reference))
        super().release(document)


def build_pdf(widths):
    """PDF with one blank page per width; widths identify pages after a merge."""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def read_widths(data):
    return [round(float(page.mediabox.width)) for page in PdfReader(io.BytesIO(data)).pages]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def page_widths():
    return read_widths


@pytest.fixture
def events():
    return []


@pytest.fixture
def storage(events):
    return FakeStorage(
        {
            "batches/a.pdf": build_pdf([101, 102, 103]),
            "batches/b.pdf": build_pdf([201, 202]),
            "batches/c.pdf": build_pdf([301]),
        },
        events=events,
    )


@pytest.fixture
def composer(events):
    return TrackingComposer(events)


@pytest.fixture
def ftp():
    return FakeFtpConnector()


@pytest.fixture
def make_ftp():
    return FakeFtpConnector


@pytest.fixture
def s3_error():
    return FakeS3Error

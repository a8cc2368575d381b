"""ftplib-based FTP client for delivering merged PDFs."""
import ftplib
import io
import logging
from typing import Optional

from pipeline.core.config import FTP_DEFAULT_PORT, FTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class FtpClientSession:
    """One logged-in FTP control connection."""

    def __init__(self, ftp: ftplib.FTP, host: str):
        self._ftp: Optional[ftplib.FTP] = ftp
        self.host = host

    @property
    def closed(self) -> bool:
        return self._ftp is None

    def upload_stream(self, data: bytes, remote_filename: str) -> None:
        if self._ftp is None:
            raise RuntimeError(f"FTP session to {self.host} is closed")
        self._ftp.storbinary(f"STOR {remote_filename}", io.BytesIO(data))
        logger.debug(f"STOR {remote_filename} complete ({len(data)} bytes)")

    def close(self, graceful: bool = True) -> None:
        """
        Tear down the session.

        A graceful close sends QUIT and falls back to dropping the socket if
        the server does not answer. Safe to call more than once.
        """
        if self._ftp is None:
            return
        ftp, self._ftp = self._ftp, None
        if graceful:
            try:
                ftp.quit()
                return
            except ftplib.all_errors as e:
                logger.warning(f"FTP QUIT to {self.host} failed, closing socket: {e}")
        ftp.close()


class FtpClient:
    """Opens FTP sessions with shared timeout and passive-mode settings."""

    def __init__(self, timeout: float = FTP_TIMEOUT_SECONDS, passive: bool = True):
        self.timeout = timeout
        self.passive = passive

    def connect(
        self,
        host: str,
        user: str,
        password: str,
        port: int = FTP_DEFAULT_PORT,
        secure: bool = False,
    ) -> FtpClientSession:
        """
        Connect and log in.

        Args:
            host: FTP server hostname
            user: Login name
            password: Login password
            port: Control port
            secure: Use explicit FTPS (AUTH TLS) with a protected data channel

        Raises:
            ftplib.Error, OSError: Connection or login failed
        """
        ftp = ftplib.FTP_TLS(timeout=self.timeout) if secure else ftplib.FTP(timeout=self.timeout)
        try:
            ftp.connect(host, port)
            ftp.login(user, password)
            if secure:
                ftp.prot_p()
            ftp.set_pasv(self.passive)
        except Exception:
            ftp.close()
            raise

        logger.info(f"FTP session opened: {host}:{port} (secure={secure})")
        return FtpClientSession(ftp, host)

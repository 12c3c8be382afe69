import smtplib

import pytest

from authcore import utils


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def sendmail(self, sender, to, message):
        self.calls.append(("sendmail", sender, to, message))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(utils.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_send_otp_renders_code(fake_smtp):
    notifier = utils.SmtpNotifier(server="mail.local", port=2525, user="bot@x.com",
                                  password="pw", timeout=3)
    assert notifier.send_otp("a@x.com", 4821)

    smtp = fake_smtp.instances[0]
    assert (smtp.host, smtp.port, smtp.timeout) == ("mail.local", 2525, 3)
    assert smtp.calls[0] == "starttls"
    assert smtp.calls[1] == ("login", "bot@x.com")
    _, sender, to, message = smtp.calls[2]
    assert (sender, to) == ("bot@x.com", "a@x.com")
    assert "4821" in message


def test_send_failure_reports_false(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(utils.smtplib, "SMTP", refuse)
    assert utils.SmtpNotifier(server="mail.local").send_otp("a@x.com", 1234) is False


def test_timeout_reports_false(monkeypatch):
    def slow(*args, **kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr(utils.smtplib, "SMTP", slow)
    assert utils.SmtpNotifier(server="mail.local").send_otp("a@x.com", 1234) is False

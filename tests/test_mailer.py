import smtplib

import pytest

from boxoffice.core.config import Settings
from boxoffice.models import Order, Ticket
from boxoffice.utils.mailer import QR_CID, TicketMailer, build_ticket_message, render_ticket_qr

from conftest import make_user


def _mailer(**overrides):
    values = {"SMTP_HOST": "smtp.example.com", "SMTP_PORT": 587, "SMTP_USER": "tickets@example.com"}
    values.update(overrides)
    return TicketMailer(Settings(**values))


@pytest.fixture
def order(db, showtime):
    order = Order(
        ref_code="BKK-0001",
        showtime_id=showtime.id,
        buyer_email="buyer@example.com",
        status="paid",
        total_amount=550,
        promo_code="SAVE10",
        discount_amt=50,
    )
    order.tickets = [Ticket(seat_label=s, price=150) for s in ("A1", "A2", "A3", "A4")]
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def test_qr_is_a_png():
    assert render_ticket_qr("BKK-0001").startswith(b"\x89PNG")


def test_message_has_text_html_and_inline_qr(order):
    msg = build_ticket_message(order, "buyer@example.com", "tickets@example.com", "THB")

    assert msg["To"] == "buyer@example.com"
    assert msg["Subject"] == "Your Tickets: Dune: Part Two - BKK-0001"

    text = msg.get_body(preferencelist=("plain",)).get_content()
    assert "Seats: A1, A2, A3, A4" in text
    assert "Discount: -50.00 THB (code: SAVE10)" in text
    assert "Total: 550.00 THB" in text

    html = msg.get_body(preferencelist=("html",)).get_content()
    assert f"cid:{QR_CID}" in html

    images = [part for part in msg.walk() if part.get_content_type() == "image/png"]
    assert len(images) == 1
    assert images[0]["Content-ID"] == f"<{QR_CID}>"


def test_message_without_discount_has_no_discount_row(order, db):
    order.discount_amt = None
    order.promo_code = None
    db.commit()

    msg = build_ticket_message(order, "b@example.com", "t@example.com", "THB")
    text = msg.get_body(preferencelist=("plain",)).get_content()
    assert "Discount" not in text
    assert "Total: 550.00 THB" in text


def test_disabled_mailer_skips(db, order):
    mailer = TicketMailer(Settings(SMTP_USER=""))
    assert not mailer.enabled
    assert mailer.send_ticket_email(db, order.id) is False


def test_sends_to_buyer_email(db, order, monkeypatch):
    mailer = _mailer()
    sent = []
    monkeypatch.setattr(mailer, "_send", sent.append)

    assert mailer.send_ticket_email(db, order.id) is True
    assert [m["To"] for m in sent] == ["buyer@example.com"]
    assert sent[0]["From"] == "tickets@example.com"


def test_falls_back_to_account_email(db, order, monkeypatch):
    user = make_user(db, email="account@example.com")
    order.buyer_email = None
    order.user_id = user.id
    db.commit()

    mailer = _mailer(MAIL_FROM="Boxoffice <noreply@example.com>")
    sent = []
    monkeypatch.setattr(mailer, "_send", sent.append)

    assert mailer.send_ticket_email(db, order.id) is True
    assert sent[0]["To"] == "account@example.com"
    assert sent[0]["From"] == "Boxoffice <noreply@example.com>"


def test_no_recipient_or_unknown_order_skips(db, order, monkeypatch):
    order.buyer_email = None
    db.commit()
    mailer = _mailer()
    monkeypatch.setattr(mailer, "_send", lambda msg: pytest.fail("should not send"))

    assert mailer.send_ticket_email(db, order.id) is False
    assert mailer.send_ticket_email(db, 999) is False


class FakeSMTP:
    def __init__(self, drop_first=False):
        self.messages = []
        self.drop_first = drop_first
        self.closed = False

    def send_message(self, msg):
        if self.drop_first:
            self.drop_first = False
            raise smtplib.SMTPServerDisconnected("gone")
        self.messages.append(msg)

    def quit(self):
        self.closed = True


def test_reuses_connection_and_reconnects_when_dropped(db, order, monkeypatch):
    mailer = _mailer()
    connections = [FakeSMTP(drop_first=True), FakeSMTP()]
    opened = []

    def connect():
        conn = connections[len(opened)]
        opened.append(conn)
        return conn

    monkeypatch.setattr(mailer, "_connect", connect)

    mailer.send_ticket_email(db, order.id)
    mailer.send_ticket_email(db, order.id)

    assert len(opened) == 2
    assert len(connections[1].messages) == 2

    mailer.close()
    assert connections[1].closed
    mailer.close()


def test_transport_errors_propagate(db, order, monkeypatch):
    mailer = _mailer()

    def refuse():
        raise ConnectionRefusedError("no SMTP here")

    monkeypatch.setattr(mailer, "_connect", refuse)
    with pytest.raises(ConnectionRefusedError):
        mailer.send_ticket_email(db, order.id)

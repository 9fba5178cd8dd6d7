import html
import io
import logging
import smtplib
import threading
from email.message import EmailMessage
from typing import Optional

import qrcode
from sqlalchemy.orm import Session, joinedload

from boxoffice.core.config import Settings
from boxoffice.models.order import Order
from boxoffice.models.showtime import Showtime

logger = logging.getLogger(__name__)

QR_CID = "ticketqr"


def render_ticket_qr(ref_code: str) -> bytes:
    """PNG bytes of the QR code scanned at the counter."""
    image = qrcode.make(f"TICKET:{ref_code}")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def build_ticket_message(order: Order, recipient: str, sender: str, currency: str) -> EmailMessage:
    showtime = order.showtime
    movie_title = showtime.movie.title
    seats = ", ".join(t.seat_label for t in order.tickets)
    total = f"{float(order.total_amount):.2f}"
    starts_at = showtime.starts_at.strftime("%Y-%m-%d %H:%M")
    discount = float(order.discount_amt or 0)

    rows = [
        ("Movie", movie_title),
        ("Theater", showtime.theater),
        ("Showtime", starts_at),
        ("Seats", seats),
    ]
    if discount > 0:
        label = f"-{discount:.2f} {currency}"
        if order.promo_code:
            label += f" (code: {order.promo_code})"
        rows.append(("Discount", label))
    rows.append(("Total", f"{total} {currency}"))

    text_body = "\n".join(
        [f"Your order {order.ref_code} has been paid.", ""]
        + [f"{name}: {value}" for name, value in rows]
        + ["", "Show the QR code in this email at the counter to collect your tickets."]
    )
    table = "".join(
        f"<tr><td><b>{html.escape(name)}</b></td><td>{html.escape(str(value))}</td></tr>"
        for name, value in rows
    )
    html_body = f"""
    <div style="font-family:ui-sans-serif,system-ui,-apple-system,'Segoe UI',Roboto,Arial;">
      <h2>Movie Ticket Confirmation</h2>
      <p>Your order <b>{html.escape(order.ref_code)}</b> has been paid.</p>
      <table cellpadding="6" style="border-collapse:collapse">{table}</table>
      <p style="margin-top:12px">Show this QR code at the counter to collect your tickets:</p>
      <img src="cid:{QR_CID}" width="180" height="180" alt="Ticket QR" />
    </div>
    """

    msg = EmailMessage()
    msg["Subject"] = f"Your Tickets: {movie_title} - {order.ref_code}"
    msg["From"] = sender
    msg["To"] = recipient
    msg.set_content(text_body)
    msg.add_alternative(html_body, subtype="html")
    msg.get_payload()[1].add_related(
        render_ticket_qr(order.ref_code),
        maintype="image",
        subtype="png",
        cid=f"<{QR_CID}>",
        filename="ticket-qr.png",
    )
    return msg


class TicketMailer:
    """
    Sends ticket confirmation emails over one reusable SMTP connection.

    Created once at application startup and closed at shutdown. The
    connection is opened on first use and re-opened if the server dropped
    it; a lock serialises sends from the request threadpool.
    """

    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASS
        self.sender = settings.mail_sender
        self.currency = settings.CURRENCY
        self._smtp: Optional[smtplib.SMTP] = None
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.user)

    def _connect(self) -> smtplib.SMTP:
        if self.port == 465:
            smtp = smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=30)
            smtp.starttls()
        if self.user:
            smtp.login(self.user, self.password)
        return smtp

    def _send(self, msg: EmailMessage) -> None:
        with self._lock:
            if self._smtp is None:
                self._smtp = self._connect()
            try:
                self._smtp.send_message(msg)
            except smtplib.SMTPServerDisconnected:
                logger.info("SMTP connection dropped, reconnecting.")
                self._smtp = self._connect()
                self._smtp.send_message(msg)

    def send_ticket_email(self, db: Session, order_id: int) -> bool:
        """
        Email the tickets of a paid order. Returns False when the mail was
        skipped (mailer disabled, unknown order, no recipient). Transport
        errors propagate to the caller.
        """
        if not self.enabled:
            logger.warning("[mail] skip: SMTP is not configured (order id %s)", order_id)
            return False

        order = (
            db.query(Order)
            .options(
                joinedload(Order.user),
                joinedload(Order.tickets),
                joinedload(Order.showtime).joinedload(Showtime.movie),
            )
            .filter(Order.id == order_id)
            .first()
        )
        if order is None:
            return False

        recipient = order.buyer_email or (order.user.email if order.user else None)
        if not recipient:
            logger.warning("[mail] skip: no recipient for order %s", order.ref_code)
            return False

        msg = build_ticket_message(order, recipient, self.sender, self.currency)
        self._send(msg)
        logger.info("[mail] sent to %s for %s", recipient, order.ref_code)
        return True

    def close(self) -> None:
        with self._lock:
            if self._smtp is None:
                return
            try:
                self._smtp.quit()
            except smtplib.SMTPException:
                logger.warning("SMTP connection did not close cleanly.")
            finally:
                self._smtp = None

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boxoffice.db.session import get_db
from boxoffice.api.deps import get_capabilities, get_mailer
from boxoffice.db.capabilities import SchemaCapabilities
from boxoffice.schemas.order import PaymentConfirm, PaymentConfirmResponse
from boxoffice.utils.checkout import confirm_payment
from boxoffice.utils.mailer import TicketMailer

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/confirm", response_model=PaymentConfirmResponse)
def confirm(
    data: PaymentConfirm,
    db: Session = Depends(get_db),
    mailer: TicketMailer = Depends(get_mailer),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
):
    """
    Record a paid checkout: one order per ``refCode``, one ticket per seat,
    optional promotion, then the ticket email.

    Retrying with the same ``refCode`` returns the same order id and
    ``emailSent: false``.
    """
    result = confirm_payment(db, data, mailer=mailer, capabilities=capabilities)
    return PaymentConfirmResponse(order_id=result.order_id, email_sent=result.email_sent)

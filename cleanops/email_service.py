"""
Email Service using Resend
Renders MJML templates to HTML plus a plaintext part, then sends through Resend.

Every sender is used best-effort by the job and booking endpoints: a failed send
is logged by the caller and never fails the request that triggered it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import COMPANY_NAME, EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import (
    booking_acknowledgment_template,
    job_assignment_template,
    job_rescheduled_template,
    new_booking_request_template,
)
from .shared.sanitization import html_to_text
from .shared.timeutils import business_tz, to_utc

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str
    text: str


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a mapping with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


def render_email(subject: str, mjml_content: str) -> EmailContent:
    html = compile_mjml_to_html(mjml_content)
    return EmailContent(subject=subject, html=html, text=html_to_text(html))


async def send_email(to: Union[str, list[str]], content: EmailContent, from_address: Optional[str] = None) -> dict:
    """
    Send a rendered email through Resend

    Args:
        to: Recipient email(s)
        content: Rendered subject, HTML and plaintext
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    recipients = [to] if isinstance(to, str) else to

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": from_address or EMAIL_FROM_ADDRESS,
                "to": recipients,
                "subject": content.subject,
                "html": content.html,
                "text": content.text,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Formatting helpers
# ============================================


def format_date(value: Optional[datetime]) -> str:
    """'Monday, 3 March 2025' in the business timezone"""
    if value is None:
        return "To be confirmed"
    local = to_utc(value).astimezone(business_tz())
    return f"{local:%A}, {local.day} {local:%B %Y}"


def format_time(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return f"{to_utc(value).astimezone(business_tz()):%H:%M}"


def format_price(amount: Optional[float], currency: str = "GBP") -> Optional[str]:
    if amount is None:
        return None
    symbol = {"GBP": "£", "EUR": "€", "USD": "$"}.get(currency.upper(), f"{currency} ")
    return f"{symbol}{amount:,.2f}"


def frequency_label(frequency: Optional[str]) -> str:
    if not frequency or frequency == "one_time":
        return "One-time"
    return frequency.replace("_", " ").capitalize()


# ============================================
# Job emails
# ============================================


@dataclass
class JobAssignmentEmailParams:
    employee_email: str
    employee_name: str
    job_title: str
    scheduled_for: Optional[datetime]
    address: str
    customer_name: str
    customer_phone: Optional[str] = None
    duration_minutes: Optional[int] = None
    job_description: Optional[str] = None
    special_instructions: Optional[str] = None
    job_id: Optional[int] = None
    company_name: str = COMPANY_NAME


@dataclass
class JobRescheduledEmailParams:
    to: str
    recipient_name: str
    job_title: str
    original_date: Optional[datetime]
    new_date: datetime
    reason: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: Optional[int] = None
    is_employee_notification: bool = False
    customer_info: Optional[str] = None
    company_name: str = COMPANY_NAME


def render_job_assignment_email(params: JobAssignmentEmailParams) -> EmailContent:
    date_str = format_date(params.scheduled_for)
    mjml_content = job_assignment_template(
        employee_name=params.employee_name,
        job_title=params.job_title,
        scheduled_date=date_str,
        scheduled_time=format_time(params.scheduled_for),
        address=params.address,
        customer_name=params.customer_name,
        company_name=params.company_name,
        customer_phone=params.customer_phone,
        estimated_duration=f"{params.duration_minutes} minutes" if params.duration_minutes else None,
        job_description=params.job_description,
        special_instructions=params.special_instructions,
        job_url=f"{FRONTEND_URL}/employee/jobs/{params.job_id}" if params.job_id else None,
    )
    return render_email(f"New Job: {params.job_title} on {date_str}", mjml_content)


def render_job_rescheduled_email(params: JobRescheduledEmailParams) -> EmailContent:
    mjml_content = job_rescheduled_template(
        recipient_name=params.recipient_name,
        job_title=params.job_title,
        original_date=format_date(params.original_date) if params.original_date else "Previous date",
        new_date=format_date(params.new_date),
        new_time=format_time(params.new_date),
        company_name=params.company_name,
        reason=params.reason or "Schedule adjustment",
        location=params.location,
        duration_minutes=params.duration_minutes,
        is_employee_notification=params.is_employee_notification,
        customer_info=params.customer_info,
    )
    return render_email(f"Booking Rescheduled: {params.job_title} - {params.company_name}", mjml_content)


async def send_job_assignment_email(params: JobAssignmentEmailParams) -> dict:
    """Send new job assignment notification to an employee"""
    return await send_email(to=params.employee_email, content=render_job_assignment_email(params))


async def send_job_rescheduled_email(params: JobRescheduledEmailParams) -> dict:
    """Send reschedule notice to a customer or an assigned employee"""
    return await send_email(to=params.to, content=render_job_rescheduled_email(params))


# ============================================
# Booking emails
# ============================================


@dataclass
class BookingAcknowledgmentParams:
    to: str
    customer_name: str
    service_type: str
    preferred_date: Optional[datetime]
    address: str
    preferred_time_slot: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    estimated_price: Optional[float] = None
    currency: str = "GBP"
    frequency: Optional[str] = None
    company_name: str = COMPANY_NAME
    company_phone: Optional[str] = None
    company_email: Optional[str] = None
    booking_id: Optional[int] = None


@dataclass
class NewBookingRequestParams:
    company_email: str
    customer_name: str
    customer_email: str
    service_type: str
    preferred_date: Optional[datetime]
    address: str
    customer_phone: Optional[str] = None
    preferred_time_slot: Optional[str] = None
    city: Optional[str] = None
    postcode: Optional[str] = None
    estimated_price: Optional[float] = None
    currency: str = "GBP"
    frequency: Optional[str] = None
    special_requirements: Optional[str] = None
    company_name: str = COMPANY_NAME
    booking_id: Optional[int] = None


def _join_address(*parts: Optional[str]) -> str:
    return ", ".join(p for p in parts if p)


def render_booking_acknowledgment_email(params: BookingAcknowledgmentParams) -> EmailContent:
    mjml_content = booking_acknowledgment_template(
        customer_name=params.customer_name,
        service_type=params.service_type,
        preferred_date=format_date(params.preferred_date),
        preferred_time_slot=params.preferred_time_slot,
        address=_join_address(params.address, params.city, params.postcode),
        frequency=frequency_label(params.frequency),
        estimated_price=format_price(params.estimated_price, params.currency),
        company_name=params.company_name,
        company_phone=params.company_phone,
        company_email=params.company_email,
        portal_url=f"{FRONTEND_URL}/portal/bookings/{params.booking_id}" if params.booking_id else None,
    )
    return render_email(f"Booking Request Received - {params.company_name}", mjml_content)


def render_new_booking_request_email(params: NewBookingRequestParams) -> EmailContent:
    mjml_content = new_booking_request_template(
        customer_name=params.customer_name,
        customer_email=params.customer_email,
        customer_phone=params.customer_phone,
        service_type=params.service_type,
        preferred_date=format_date(params.preferred_date),
        preferred_time_slot=params.preferred_time_slot,
        address=_join_address(params.address, params.city, params.postcode),
        frequency=frequency_label(params.frequency),
        estimated_price=format_price(params.estimated_price, params.currency),
        special_requirements=params.special_requirements,
        company_name=params.company_name,
        dashboard_url=f"{FRONTEND_URL}/dashboard/booking-requests/{params.booking_id}" if params.booking_id else None,
    )
    return render_email(f"New Booking Request: {params.customer_name} - {params.service_type}", mjml_content)


async def send_booking_acknowledgment_email(params: BookingAcknowledgmentParams) -> dict:
    """Send booking request acknowledgment to the customer"""
    return await send_email(to=params.to, content=render_booking_acknowledgment_email(params))


async def send_new_booking_request_email(params: NewBookingRequestParams) -> dict:
    """Send new booking request notification to the company"""
    return await send_email(to=params.company_email, content=render_new_booking_request_email(params))

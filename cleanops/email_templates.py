"""
MJML Email Templates
Job and booking notifications, all built on one responsive base layout
"""

from typing import Optional

from .shared.sanitization import sanitize_string

# App theme colors - Blue/Slate color scheme
THEME = {
    "primary": "#3b82f6",
    "primary_dark": "#2563eb",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#10b981",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    company_name: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="20px" font-weight="700" color="{THEME['primary_dark']}" padding="0">
              {company_name}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 0 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              Sent by {company_name}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def details_table(rows: list[tuple[str, Optional[str]]]) -> str:
    """Label/value rows; rows with an empty value are left out"""
    return "".join(
        f"""
    <mj-text font-size="14px" padding="6px 0">
      <span style="color: {THEME['text_muted']};">{label}:</span>
      <strong style="color: {THEME['text_primary']};">{sanitize_string(str(value))}</strong>
    </mj-text>"""
        for label, value in rows
        if value not in (None, "")
    )


def job_assignment_template(
    employee_name: str,
    job_title: str,
    scheduled_date: str,
    scheduled_time: Optional[str],
    address: str,
    customer_name: str,
    company_name: str,
    customer_phone: Optional[str] = None,
    estimated_duration: Optional[str] = None,
    job_description: Optional[str] = None,
    special_instructions: Optional[str] = None,
    job_url: Optional[str] = None,
) -> str:
    """New job assignment notification for an employee"""
    description = ""
    if job_description:
        description = f"""
    <mj-text>
      <strong>Job Description:</strong> {sanitize_string(job_description)}
    </mj-text>
    """

    instructions = ""
    if special_instructions:
        instructions = f"""
    <mj-text container-background-color="#fffbeb" color="{THEME['warning']}" padding="12px 16px">
      ⚠️ Special Instructions: {sanitize_string(special_instructions)}
    </mj-text>
    """

    details = details_table(
        [
            ("Job", job_title),
            ("Date", scheduled_date),
            ("Time", scheduled_time),
            ("Duration", estimated_duration),
            ("Address", address),
            ("Customer", customer_name),
            ("Customer Phone", customer_phone),
        ]
    )

    content = f"""
    <mj-text>
      Hi {sanitize_string(employee_name)},
    </mj-text>

    <mj-text>
      You have been assigned to a new job. Please review the details below:
    </mj-text>

    {details}

    {description}
    {instructions}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Please ensure you arrive on time and check in when you start the job.
    </mj-text>
    """

    return get_base_template(
        title="New Job Assigned",
        preview_text=f"New Job: {job_title} on {scheduled_date}",
        content_sections=content,
        company_name=company_name,
        cta_url=job_url,
        cta_label="View Job Details" if job_url else None,
    )


def job_rescheduled_template(
    recipient_name: str,
    job_title: str,
    original_date: str,
    new_date: str,
    new_time: str,
    company_name: str,
    reason: str,
    location: Optional[str] = None,
    duration_minutes: Optional[int] = None,
    is_employee_notification: bool = False,
    customer_info: Optional[str] = None,
) -> str:
    """Reschedule notice; the employee variant adds customer and duration details"""
    if is_employee_notification:
        intro = "A job assigned to you has been rescheduled."
        rows = [
            ("Job", job_title),
            ("Customer", customer_info),
            ("Location", location),
            ("Duration", f"{duration_minutes} minutes" if duration_minutes else None),
            ("Reason", reason),
        ]
        closing = "Please update your schedule accordingly."
    else:
        intro = "Your cleaning service has been rescheduled."
        rows = [("Service", job_title), ("Location", location), ("Reason", reason)]
        closing = "If this new time does not work for you, please contact us to arrange an alternative."

    content = f"""
    <mj-text>
      Hi {sanitize_string(recipient_name)},
    </mj-text>

    <mj-text>
      {intro}
    </mj-text>

    <mj-text font-size="12px" color="{THEME['text_muted']}" padding="16px 0 0 0">
      ORIGINAL DATE
    </mj-text>
    <mj-text color="{THEME['text_secondary']}" padding="0">
      <s>{original_date}</s>
    </mj-text>

    <mj-text font-size="12px" color="{THEME['text_muted']}" padding="16px 0 0 0">
      NEW DATE
    </mj-text>
    <mj-text color="{THEME['success']}" font-weight="600" padding="0 0 16px 0">
      📅 {new_date} at {new_time}
    </mj-text>

    {details_table(rows)}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      {closing}
    </mj-text>
    """

    return get_base_template(
        title="Booking Rescheduled",
        preview_text=f"Booking Rescheduled: {job_title}",
        content_sections=content,
        company_name=company_name,
    )


def booking_acknowledgment_template(
    customer_name: str,
    service_type: str,
    preferred_date: str,
    preferred_time_slot: Optional[str],
    address: str,
    frequency: str,
    estimated_price: Optional[str],
    company_name: str,
    company_phone: Optional[str] = None,
    company_email: Optional[str] = None,
    portal_url: Optional[str] = None,
) -> str:
    """Booking request received, sent to the customer"""
    booking_details = details_table(
        [
            ("Service", service_type),
            ("Preferred Date", preferred_date),
            ("Preferred Time", preferred_time_slot or "Flexible"),
            ("Address", address),
            ("Frequency", frequency),
            ("Estimated Price", estimated_price or "Quote pending"),
        ]
    )
    contact_details = details_table(
        [
            ("Phone", company_phone or "See website"),
            ("Email", company_email or "See website"),
        ]
    )

    content = f"""
    <mj-text>
      Hi {sanitize_string(customer_name)},
    </mj-text>

    <mj-text>
      Thank you for your booking request! We have received your enquiry and will be in touch shortly.
    </mj-text>

    <mj-text font-weight="600" color="{THEME['text_primary']}" padding="16px 0 0 0">
      Booking Details
    </mj-text>

    {booking_details}

    <mj-text>
      We will review your request and confirm availability within 24 hours.
    </mj-text>

    <mj-text>
      <strong>Questions?</strong> Contact us:
    </mj-text>

    {contact_details}
    """

    return get_base_template(
        title="Booking Request Received",
        preview_text=f"Booking Request Received - {company_name}",
        content_sections=content,
        company_name=company_name,
        cta_url=portal_url,
        cta_label="View Your Booking" if portal_url else None,
    )


def new_booking_request_template(
    customer_name: str,
    customer_email: str,
    customer_phone: Optional[str],
    service_type: str,
    preferred_date: str,
    preferred_time_slot: Optional[str],
    address: str,
    frequency: str,
    estimated_price: Optional[str],
    special_requirements: Optional[str],
    company_name: str,
    dashboard_url: Optional[str] = None,
) -> str:
    """New booking request notification for the company"""
    customer_details = details_table(
        [
            ("Name", customer_name),
            ("Email", customer_email),
            ("Phone", customer_phone or "Not provided"),
        ]
    )
    booking_details = details_table(
        [
            ("Service", service_type),
            ("Preferred Date", preferred_date),
            ("Preferred Time", preferred_time_slot or "Flexible"),
            ("Address", address),
            ("Frequency", frequency),
            ("Estimated Price", estimated_price or "To be quoted"),
            ("Special Requirements", special_requirements or "None"),
        ]
    )

    content = f"""
    <mj-text>
      You have received a new booking request!
    </mj-text>

    <mj-text font-weight="600" color="{THEME['text_primary']}" padding="16px 0 0 0">
      Customer Information
    </mj-text>

    {customer_details}

    <mj-text font-weight="600" color="{THEME['text_primary']}" padding="16px 0 0 0">
      Booking Details
    </mj-text>

    {booking_details}

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Please respond to this request within 24 hours.
    </mj-text>
    """

    return get_base_template(
        title="New Booking Request",
        preview_text=f"New Booking Request: {customer_name}",
        content_sections=content,
        company_name=company_name,
        cta_url=dashboard_url,
        cta_label="Review Booking" if dashboard_url else None,
    )

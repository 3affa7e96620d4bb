# utils/email.py
import os

import requests

BREVO_URL = "https://api.brevo.com/v3/smtp/email"
BREVO_KEY = os.getenv("BREVO_API_KEY")
SENDER_EMAIL = os.getenv("NOTIFY_SENDER_EMAIL", "noreply@kasmoni.app")
SENDER_NAME = "Kasmoni"


class EmailDeliveryError(Exception):
     """Brevo refused the message or is not configured."""


def send_email(to_email: str, subject: str, html_content: str, timeout: float = 10):
     api_key = os.getenv("BREVO_API_KEY", BREVO_KEY)
     if not api_key:
          raise EmailDeliveryError("BREVO_API_KEY is not set")

     response = requests.post(
          BREVO_URL,
          headers={
               "api-key": api_key,
               "Content-Type": "application/json",
          },
          json={
               "sender": {"name": SENDER_NAME, "email": SENDER_EMAIL},
               "to": [{"email": to_email}],
               "subject": subject,
               "htmlContent": html_content,
          },
          timeout=timeout,
     )
     if response.status_code not in (200, 201, 202):
          raise EmailDeliveryError(f"Brevo error: {response.text}")

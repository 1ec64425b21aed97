import logging
import smtplib
from email.mime.text import MIMEText

from markupsafe import escape

from cruiser.services.errors import MailNotConfiguredError

logger = logging.getLogger(__name__)

mailer = None


class SmtpMailer:

    def __init__(self, host, port, user, password):
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password

    def send(self, to, subject, html):
        msg = MIMEText(html, 'html')
        msg['Subject'] = subject
        msg['From'] = f'"Campus Cruiser" <{self.user}>'
        msg['To'] = to

        try:
            if self.port == 465:
                server = smtplib.SMTP_SSL(self.host, self.port)
            else:
                server = smtplib.SMTP(self.host, self.port)
            with server:
                if self.port != 465:
                    server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False

        logger.info("Email sent successfully to %s", to)
        return True


def init_mail(app):
    global mailer
    host = app.config.get('EMAIL_HOST')
    port = app.config.get('EMAIL_PORT')
    user = app.config.get('EMAIL_USER')
    password = app.config.get('EMAIL_PASS')

    if not (host and port and user and password):
        logger.warning("Email environment variables are not set. Email functionality will be disabled.")
        mailer = None
        return
    try:
        port = int(port)
    except (TypeError, ValueError):
        logger.warning("EMAIL_PORT %r is not a valid port. Email functionality will be disabled.", port)
        mailer = None
        return
    mailer = SmtpMailer(host, port, user, password)


def send_mail(to, subject, html):
    if mailer is None:
        raise MailNotConfiguredError()
    return mailer.send(to, subject, html)


def welcome_email_body(student, password):
    return (
        f"<p>Hi {escape(student.full_name)},</p>"
        f"<p>Your Campus Cruiser account is ready.</p>"
        f"<p>Roll number: <strong>{escape(student.roll_number)}</strong><br>"
        f"Password: <strong>{escape(password)}</strong></p>"
        f"<p>Log in to see your bus route and pickup stop.</p>"
    )

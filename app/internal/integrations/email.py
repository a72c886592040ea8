import smtplib
from asyncio import to_thread
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from app.config import Config
from app.internal.log import factory_logger
from app.models.pydantic.notificacion import Correo

log_email = factory_logger('email')

MENSAJE_SIN_ENLACE = 'La etiqueta fue creada, pero falta el enlace.'


class NotificationException(Exception):
    def __init__(self, correo: Correo, msg: str):
        self.correo = correo
        self.msg = msg
        super().__init__(msg)

    def __str__(self):
        return f'No se pudo enviar "{self.correo.subject}" a {self.correo.to}: {self.msg}'


class Notificador:
    """Envía los correos del webhook por SMTP."""

    smtp_timeout = 15

    def __init__(self, config: Config):
        self.host = config.smtp_host
        self.port = config.smtp_port
        self.user = config.smtp_user
        self.password = config.smtp_password
        self.starttls = config.smtp_starttls
        self.mail_from = config.mail_from
        self.admin_email = config.admin_email

    def formatear(self, correo: Correo) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = correo.subject
        msg['From'] = self.mail_from
        msg['To'] = correo.to
        msg.attach(MIMEText(correo.text, 'plain', 'utf-8'))
        if correo.html:
            msg.attach(MIMEText(correo.html, 'html', 'utf-8'))
        return msg

    def _enviar_smtp(self, msg: MIMEMultipart):
        with smtplib.SMTP(self.host, self.port, timeout=self.smtp_timeout) as server:
            # Como nodemailer: se sube a TLS solo si el servidor ofrece STARTTLS
            server.ehlo()
            if self.starttls and server.has_extn('starttls'):
                server.starttls()
                server.ehlo()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def enviar(self, correo: Correo):
        """
        Envía un correo. smtplib es bloqueante, así que se ejecuta en un hilo aparte.

        Raises:
            NotificationException: si el servidor SMTP rechaza el envío o no responde.
        """
        msg = self.formatear(correo)
        try:
            await to_thread(self._enviar_smtp, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationException(correo, repr(e))
        log_email.info(f'Correo "{correo.subject}" enviado a {correo.to}')

    def correo_etiqueta(self, order_id: str, label_url: str | None, buyer_email: str = '') -> Correo:
        # Sin correo del comprador, la etiqueta se envía al administrador
        if label_url:
            text = f'Aquí está tu etiqueta: {label_url}'
            html = f'<p>Tu etiqueta está <a href="{escape(label_url, quote=True)}">aquí</a>.</p>'
        else:
            text = MENSAJE_SIN_ENLACE
            html = f'<p>{MENSAJE_SIN_ENLACE}</p>'
        return Correo(
            to=buyer_email or self.admin_email,
            subject=f'Tu etiqueta de envío — pedido {order_id}',
            text=text,
            html=html,
        )

    def correo_error(self, order_id: str, error: Exception) -> Correo:
        detalle = getattr(error, 'msg', None) or str(error) or 'desconocido'
        return Correo(
            to=self.admin_email,
            subject=f'Error en el pedido {order_id}',
            text=f'Algo salió mal con el pedido {order_id}: {detalle}',
        )

    async def enviar_etiqueta(self, order_id: str, label_url: str | None, buyer_email: str = ''):
        await self.enviar(self.correo_etiqueta(order_id, label_url, buyer_email))

    async def enviar_error(self, order_id: str, error: Exception):
        await self.enviar(self.correo_error(order_id, error))

"""
AI Chat Service - ServiBot assistant with live business context.

This service provides:
- Chat answers grounded in current stock and recent orders
- Photo diagnosis (multimodal request)
- Structured technical diagnosis in JSON mode
- Short client-facing messages (WhatsApp confirmations, reminders, care tips)

Chat and message helpers never raise on API failure: they return canned
text so the operator can still send something to the client.
"""

import base64
import json
import logging
from typing import Dict, List, Any, Optional

from sqlalchemy.orm import Session, joinedload

from ai_service import GeminiService, AIServiceError
from database.models import Part, ServiceOrder

logger = logging.getLogger(__name__)

CHAT_FALLBACK = ("Lo siento, tuve problemas para conectar con el servidor de IA. "
                 "Por favor verifica tu conexión o API Key.")

MESSAGE_TOPICS = {
    'maintenance': "Recordarle que su equipo requiere mantenimiento preventivo.",
    'promo': "Ofrecerle un 20% de descuento en su próxima reparación.",
    'payment': "Aviso cordial sobre un pago pendiente de su último servicio.",
    'general': "Informarle que tenemos disponibilidad inmediata para revisión técnica.",
}

DIAGNOSIS_KEYS = ['diagnosis', 'probability', 'suggested_parts',
                  'estimated_labor_time', 'repair_steps', 'safety_warning']


def strip_data_url(image_b64: str) -> str:
    """Drop a `data:...;base64,` prefix if present."""
    if 'base64,' in image_b64:
        return image_b64.split('base64,', 1)[1]
    return image_b64


def _appliance(order: Dict) -> str:
    equipment = order.get('equipment') or {}
    return f"{equipment.get('brand') or ''} {equipment.get('type') or ''}".strip() or 'equipo'


def _client_name(order: Dict) -> str:
    return (order.get('client') or {}).get('full_name') or 'cliente'


class ServiBotChatService:
    """Operations assistant backed by Gemini."""

    SYSTEM_PROMPT = """
Eres 'ServiBot', el asistente de operaciones de {company_name} ({location}).

ESTADO ACTUAL DEL NEGOCIO:
- Inventario destacado: {inventory}
- Últimos servicios: {recent_services}

RESPONSABILIDADES:
1. Responder sobre stock: si preguntan por repuestos, revisa el inventario. Advierte si hay menos de {low_stock} unidades.
2. Consultas de agenda: informa sobre el estado de los servicios recientes si mencionan clientes o números de orden.
3. Soporte técnico: guía en reparaciones, diagnóstico y soluciones mecánicas o eléctricas.
4. Análisis visual: si recibes una imagen, identifica el equipo, detecta daños visibles o códigos de error y ofrece una solución técnica.
5. Tono: profesional, técnico y eficiente. Usa emojis ocasionalmente (🔧, 📦, 📅, 🤖).

IMPORTANTE:
- Sé conciso pero técnicamente preciso.
- Si no tienes la información exacta en el contexto, indícalo educadamente.
- Habla siempre en español.
"""

    def __init__(self, session: Session, gemini: GeminiService, config: Dict = None):
        self.session = session
        self.gemini = gemini
        config = config or {}
        self.company_name = config.get('COMPANY_NAME', 'ServiTech Pro')
        self.location = config.get('COMPANY_LOCATION', 'Cali, Colombia')
        self.low_stock = config.get('LOW_STOCK_THRESHOLD', 5)

    # ---------------------------------------------------------------------
    # Context
    # ---------------------------------------------------------------------

    def build_context(self) -> Dict[str, Any]:
        """Snapshot of stock and recent work fed to the model."""
        parts = self.session.query(Part).order_by(Part.name).limit(10).all()
        orders = self.session.query(ServiceOrder).options(
            joinedload(ServiceOrder.client)
        ).order_by(ServiceOrder.created_at.desc()).limit(5).all()

        return {
            'inventory': [
                {'name': p.name, 'code': p.code, 'stock_level': p.stock_level}
                for p in parts
            ],
            'recent_services': [
                {
                    'order_number': o.order_number,
                    'status': o.status,
                    'reported_issue': o.reported_issue,
                    'client': o.client.full_name if o.client else None,
                }
                for o in orders
            ],
            'company_name': self.company_name,
            'location': self.location,
        }

    def system_instruction(self, context: Dict[str, Any] = None) -> str:
        context = context or self.build_context()
        return self.SYSTEM_PROMPT.format(
            company_name=context['company_name'],
            location=context['location'],
            inventory=json.dumps(context['inventory'], ensure_ascii=False),
            recent_services=json.dumps(context['recent_services'], ensure_ascii=False),
            low_stock=self.low_stock
        )

    # ---------------------------------------------------------------------
    # Chat
    # ---------------------------------------------------------------------

    def chat(self, message: str, history: List[Dict] = None,
             image_b64: Optional[str] = None) -> str:
        """
        Answer an operator message.

        Args:
            message: The operator's message
            history: Prior turns as {'role': 'user'|'model', 'parts': [{'text': ...}]}
            image_b64: Optional photo, raw base64 or data URL

        Returns:
            Response text, or the fallback string if anything fails
        """
        try:
            instruction = self.system_instruction()
            if image_b64:
                image = {
                    'mime_type': 'image/jpeg',
                    'data': base64.b64decode(strip_data_url(image_b64)),
                }
                return self.gemini.generate_text([message, image], system_instruction=instruction)

            turns = [
                {'role': h.get('role'), 'parts': h.get('parts', [])}
                for h in (history or [])
                if h.get('role') in ('user', 'model')
            ]
            return self.gemini.chat(message, turns, system_instruction=instruction)
        except Exception as e:
            logger.error(f"ServiBot chat failed: {e}")
            return CHAT_FALLBACK

    # ---------------------------------------------------------------------
    # Diagnosis
    # ---------------------------------------------------------------------

    def diagnose(self, appliance: Dict[str, str], symptoms: str) -> Dict[str, Any]:
        """
        Structured technical diagnosis.

        Raises:
            AIServiceError: If the model fails or returns malformed JSON
        """
        prompt = f"""
ROL: ERES "TECH-MENTOR", ASISTENTE EXPERTO EN REPARACIÓN TÉCNICA.

EQUIPO: {appliance.get('brand', '')} {appliance.get('model', '')} ({appliance.get('year') or 'Año no especificado'}).
SÍNTOMAS REPORTADOS POR EL TÉCNICO: "{symptoms}".

REQUERIMIENTOS:
- La respuesta DEBE ser un objeto JSON válido.
- "diagnosis": técnico y conciso.
- "probability": "Alta", "Media" o "Baja".
- "safety_warning": obligatorio, resalta riesgos eléctricos o físicos.
- "repair_steps": lista lógica de acciones.
- "suggested_parts": componentes específicos a reemplazar.
- "estimated_labor_time": ej. "45 min".
"""
        result = self.gemini.generate_json(prompt)
        missing = [k for k in DIAGNOSIS_KEYS if k not in result]
        if missing:
            raise AIServiceError(f"Diagnosis missing fields: {', '.join(missing)}")
        logger.info(f"Diagnosis generated (probability={result.get('probability')})")
        return {k: result[k] for k in DIAGNOSIS_KEYS}

    # ---------------------------------------------------------------------
    # Client-facing texts
    # ---------------------------------------------------------------------

    def _text_or(self, prompt: str, fallback: str) -> str:
        try:
            return self.gemini.generate_text(prompt)
        except AIServiceError as e:
            logger.warning(f"Using canned text: {e}")
            return fallback

    def personalized_message(self, client_name: str, appliance: str = None,
                             topic: str = 'maintenance') -> str:
        topic_context = MESSAGE_TOPICS.get(topic, MESSAGE_TOPICS['maintenance'])
        prompt = (f"Actúa como 'ServiBot' 🤖. Redacta un mensaje súper corto (máximo 25 palabras) "
                  f"y muy amistoso para \"{client_name}\".\n"
                  f"Contexto: {topic_context}\n"
                  f"Equipo: {appliance or 'equipo'}.\n"
                  "Tono: muy amable, fresco y breve. Usa emojis. No pongas \"Asunto:\".")
        fallback = (f"¡Hola {client_name}! 😊 Le recordamos que es tiempo del mantenimiento para su "
                    f"{appliance or 'equipo'}. ¡Escríbanos para agendar! 🛠️✨")
        return self._text_or(prompt, fallback)

    def order_confirmation_message(self, order: Dict) -> str:
        scheduled = (order.get('scheduled_at') or '')[11:16]
        prompt = (f"Redacta un mensaje profesional de WhatsApp para el cliente \"{_client_name(order)}\" "
                  "confirmando su servicio técnico de hoy.\n"
                  f"- Equipo: {_appliance(order)}\n"
                  f"- Problema: {order.get('reported_issue') or ''}\n"
                  f"- Hora programada: {scheduled}\n"
                  "Instrucciones: corto (máximo 40 palabras), usa emojis (🔧, 📍, ✅), "
                  "menciona que el técnico ya tiene asignada la ruta.")
        fallback = (f"Hola {_client_name(order)}, le confirmamos su visita técnica para hoy. "
                    "El técnico se encuentra en ruta. ¡Nos vemos pronto! 🔧")
        return self._text_or(prompt, fallback)

    def waiting_parts_message(self, order: Dict) -> str:
        prompt = (f"Redacta un mensaje profesional de WhatsApp para el cliente \"{_client_name(order)}\" "
                  f"informando que su equipo ({_appliance(order)}) requiere un repuesto que no tenemos "
                  "en stock actualmente.\n- Estado: Esperando Repuesto\n"
                  "- Instrucciones: corto, profesional, menciona que le avisaremos en cuanto llegue "
                  "el repuesto. Usa emojis 📦, 🔧, ✅.")
        fallback = (f"Hola {_client_name(order)}, le informamos que para proceder con la reparación de su "
                    f"{_appliance(order)} necesitamos pedir un repuesto. Le avisaremos en cuanto esté "
                    "disponible. 📦🔧")
        return self._text_or(prompt, fallback)

    def care_recommendations(self, order: Dict) -> str:
        prompt = ("Actúa como un técnico experto. Escribe una lista corta (máximo 3 puntos) de "
                  f"recomendaciones de cuidado para el cliente sobre su {_appliance(order)}, "
                  f"considerando que la falla fue: {order.get('reported_issue') or 'no especificada'}. "
                  "Tono profesional pero amable. Formato: viñetas con emojis.")
        fallback = ("• 🔌 Desconecte el equipo antes de limpiarlo.\n"
                    "• 🧽 Mantenga filtros y rejillas libres de polvo.\n"
                    "• 📅 Programe un mantenimiento preventivo cada 6 meses.")
        return self._text_or(prompt, fallback)

    def part_repair_advice(self, part_name: str) -> str:
        prompt = ("Actúa como un experto en servicio técnico de electrodomésticos. El técnico acaba de "
                  f"escanear el repuesto \"{part_name}\".\nProporciona:\n"
                  "1. 3 síntomas comunes que indican que esta pieza está fallando.\n"
                  "2. Pasos breves para el diagnóstico.\n"
                  "3. Una recomendación de reparación profesional.\n"
                  "Formato: Markdown con emojis, profesional y conciso.")
        return self._text_or(prompt, "No se pudo obtener recomendaciones en este momento. "
                                     "Verifique su conexión.")

"""Defaults for the ticket vision model that are tracked in Git."""

# Any OpenAI-compatible endpoint works; Groq hosts the default vision model.
DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"

# Model version used by default. Can be overridden via env if needed.
DEFAULT_LLM_MODEL = "llama-3.2-90b-vision-preview"

DEFAULT_LLM_TEMPERATURE = 0.1
DEFAULT_LLM_MAX_TOKENS = 4000

# Canonical extraction prompt for ticket scans.
DEFAULT_TICKET_PROMPT = """Analiza este ticket/recibo de compra y extrae la información en formato JSON.

IMPORTANTE:
- Extrae TODOS los productos que puedas identificar
- Los precios deben ser números (sin símbolos de moneda)
- La fecha debe estar en formato YYYY-MM-DD
- Si no puedes identificar algún campo, usa null
- quantity debe ser el número de unidades compradas
- unit_price es el precio por unidad
- total es quantity * unit_price para cada producto

Responde SOLO con el JSON, sin explicaciones ni texto adicional:
{
  "store_name": "nombre de la tienda o supermercado",
  "date": "YYYY-MM-DD",
  "items": [
    { "name": "nombre del producto", "quantity": 1, "unit_price": 0.00, "total": 0.00 }
  ],
  "total": 0.00
}"""

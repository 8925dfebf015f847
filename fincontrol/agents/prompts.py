"""Prompts for the ExtractionAgent: the fixed instruction sent with each document."""

DOCUMENT_LABELS = {
    "image": "recibo/comprovante",
    "document": "extrato bancário PDF",
}

EXTRACTION_PROMPT_TEMPLATE = """Você é um especialista em análise de extratos bancários brasileiros. \
Analise o {document_label} fornecido e extraia todas as transações financeiras.

Para cada transação, identifique:
1. Descrição (nome/descrição da transação)
2. Valor em reais (número positivo)
3. Tipo: "income" para receitas/créditos ou "expense" para despesas/débitos
4. Método de pagamento: "pix", "boleto", "credito", "debito", "dinheiro" ou "transferencia"
5. Fonte de pagamento (banco/cartão identificado, se houver)
6. Data da transação (formato YYYY-MM-DD)
7. Observações adicionais (se houver)

IMPORTANTE: Retorne APENAS um JSON válido com a estrutura abaixo, sem texto adicional:
{{
  "transactions": [
    {{
      "description": "string",
      "amount": number,
      "type": "income" | "expense",
      "payment_method": "pix" | "boleto" | "credito" | "debito" | "dinheiro" | "transferencia",
      "payment_source": "string ou null",
      "transaction_date": "YYYY-MM-DD",
      "notes": "string ou null"
    }}
  ]
}}"""

PROMPT_LOG_LABEL = "Extract bank statement transactions (PT-BR, JSON {transactions: [...]})"


def build_extraction_prompt(kind: str) -> str:
    """Render the instruction for an ``image`` or ``document`` payload."""
    return EXTRACTION_PROMPT_TEMPLATE.format(document_label=DOCUMENT_LABELS[kind])

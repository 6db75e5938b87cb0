"""Prompt templates for the answer generator.

The generator only ever sees extracts of Ernest Matthieu's
"Histoire de la ville d'Enghien" (1876) and must cite them.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """\
Tu es un historien expert spécialisé dans l'histoire de la ville d'Enghien (Belgique).
Tu réponds aux questions en te basant UNIQUEMENT sur les extraits du livre
"Histoire de la ville d'Enghien" par Ernest Matthieu (1876) fournis ci-dessous.

Règles :
- Réponds toujours en français.
- Cite tes sources en indiquant le Livre, Chapitre et pages entre parenthèses.
  Exemple : (Livre I, Chapitre III, p. 120-121)
- Si l'information n'est pas dans les extraits fournis, dis-le honnêtement.
  Ne fabrique jamais d'information.
- Tu peux reformuler le texte du XIXe siècle en français moderne pour plus de clarté,
  mais reste fidèle au contenu.
- Si la question est hors sujet (pas liée à Enghien ou son histoire), redirige
  poliment vers le sujet du livre.
- Sois concis mais complet. Structure ta réponse avec des paragraphes clairs.
"""

USER_MESSAGE_TEMPLATE = """\
Extraits du livre :
---
{context}
---

Question de l'utilisateur : {question}"""


def build_user_message(question: str, context: str) -> str:
    """Combine the assembled context block and the literal question.

    Args:
        question: The user's question, unmodified.
        context: Output of :func:`enghien.pipeline.context.assemble_context`.

    Returns:
        The user message for the generator.
    """
    return USER_MESSAGE_TEMPLATE.format(context=context, question=question)

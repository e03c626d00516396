from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Tuple

from WillChat.services.completion_client import ChatCompletionMessage, CompletionClient

logger = logging.getLogger(__name__)

MAX_TITLE_WORDS = 4
FALLBACK_TITLE_WORDS = 3
ITALIAN_PLACEHOLDER = "Nuova Chat"
DEFAULT_PLACEHOLDER = "New Chat"

# Order matters: ties (and the zero-match case) resolve to the first language listed
LANGUAGE_KEYWORDS: Dict[str, FrozenSet[str]] = {
    "italian": frozenset([
        "il", "la", "di", "che", "e", "un", "una", "per", "con", "come", "sono", "hai", "ho", "cosa",
        "ciao", "grazie", "prego", "bene", "male", "molto", "poco", "grande", "piccolo",
    ]),
    "english": frozenset([
        "the", "and", "of", "to", "a", "in", "for", "is", "on", "that", "by", "this", "with", "i", "you",
        "it", "not", "or", "be", "are", "from", "at", "as", "your", "all", "any", "can", "had", "her",
        "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "man", "new", "now", "old",
        "see", "two", "way", "who", "boy", "did", "its", "let", "put", "say", "she", "too", "use",
    ]),
    "french": frozenset([
        "le", "de", "et", "à", "un", "il", "être", "en", "avoir", "que", "pour", "dans", "ce", "son",
        "une", "sur", "avec", "ne", "se", "pas", "tout", "plus", "par", "grand",
    ]),
    "spanish": frozenset([
        "el", "la", "de", "que", "y", "a", "en", "un", "ser", "se", "no", "te", "lo", "le", "da", "su",
        "por", "son", "con", "para", "al", "una", "del", "todo", "está", "muy", "fue", "han", "era",
        "sobre", "mi", "entre", "durante", "esto", "también", "antes", "ahora", "cada", "aquí",
    ]),
    "german": frozenset([
        "der", "die", "und", "in", "den", "von", "zu", "das", "mit", "sich", "des", "auf", "für", "ist",
        "im", "dem", "nicht", "ein", "eine", "als", "auch", "es", "an", "werden", "aus", "er", "hat",
        "dass", "sie", "nach", "wird", "bei", "einer", "um", "am", "sind", "noch", "wie", "einem", "über",
        "einen", "so", "zum", "war", "haben", "nur", "oder", "aber", "vor", "zur", "bis", "mehr", "durch",
        "man", "sein", "wurde", "sei",
    ]),
}
DEFAULT_LANGUAGE = "italian"

# (system prompt, user prompt template) per language
TITLE_PROMPTS: Dict[str, Tuple[str, str]] = {
    "italian": (
        "Sei un generatore di titoli. Genera un titolo breve e descrittivo per una conversazione chat "
        "basato sul primo messaggio dell'utente. Il titolo deve essere tra 1 e 4 parole massimo. "
        "Rispondi solo con il titolo, senza testo aggiuntivo o punteggiatura.",
        'Genera un titolo per una chat che inizia con questo messaggio: "{message}"',
    ),
    "english": (
        "You are a title generator. Generate a short, descriptive title for a chat conversation based "
        "on the user's first message. The title must be between 1 and 4 words maximum. Respond only "
        "with the title, no additional text or punctuation.",
        'Generate a title for a chat that starts with this message: "{message}"',
    ),
    "french": (
        "Vous êtes un générateur de titres. Générez un titre court et descriptif pour une conversation "
        "de chat basé sur le premier message de l'utilisateur. Le titre doit contenir entre 1 et 4 mots "
        "maximum. Répondez uniquement avec le titre, sans texte supplémentaire ni ponctuation.",
        'Générez un titre pour un chat qui commence par ce message: "{message}"',
    ),
    "spanish": (
        "Eres un generador de títulos. Genera un título corto y descriptivo para una conversación de "
        "chat basado en el primer mensaje del usuario. El título debe tener entre 1 y 4 palabras máximo. "
        "Responde solo con el título, sin texto adicional ni puntuación.",
        'Genera un título para un chat que comienza con este mensaje: "{message}"',
    ),
    "german": (
        "Sie sind ein Titelgenerator. Erstellen Sie einen kurzen, beschreibenden Titel für ein "
        "Chat-Gespräch basierend auf der ersten Nachricht des Benutzers. Der Titel muss zwischen 1 und 4 "
        "Wörtern maximal sein. Antworten Sie nur mit dem Titel, ohne zusätzlichen Text oder Interpunktion.",
        'Erstellen Sie einen Titel für einen Chat, der mit dieser Nachricht beginnt: "{message}"',
    ),
}


# Guess the language of a message by counting common-word hits per language
def detect_language(text: str) -> str:
    words = text.lower().split()
    best_language = DEFAULT_LANGUAGE
    best_count = 0
    for language, keywords in LANGUAGE_KEYWORDS.items():
        count = sum(1 for word in words if word in keywords)
        if count > best_count:
            best_language, best_count = language, count
    return best_language


def build_title_messages(first_user_message: str, language: str) -> List[ChatCompletionMessage]:
    system_prompt, user_template = TITLE_PROMPTS.get(language, TITLE_PROMPTS[DEFAULT_LANGUAGE])
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_template.format(message=first_user_message)},
    ]


# Strip quotes and keep at most MAX_TITLE_WORDS words of the model's reply
def clean_title(raw: str) -> str:
    title = raw.strip().replace('"', "").replace("'", "")
    return " ".join(title.split()[:MAX_TITLE_WORDS])


def fallback_title(first_user_message: str) -> str:
    words = first_user_message.split(" ")[:FALLBACK_TITLE_WORDS]
    return " ".join(words) or ITALIAN_PLACEHOLDER


class TitleGenerator:
    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    # Generate a short conversation title in the language of the first message; never raises
    async def generate(self, first_user_message: str) -> str:
        language = detect_language(first_user_message)
        try:
            response = await self.client.complete(build_title_messages(first_user_message, language))
            if not isinstance(response, str):
                raise TypeError(f"Expected title text, got {type(response).__name__}")
        except Exception:
            logger.exception("chat.title.error: language=%s", language)
            return fallback_title(first_user_message)

        title = clean_title(response)
        if title:
            return title
        return ITALIAN_PLACEHOLDER if language == "italian" else DEFAULT_PLACEHOLDER

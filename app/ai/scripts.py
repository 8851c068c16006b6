"""Embedded scripts executed by the AI bridge inside a separate interpreter.

Every script receives the directory holding its external modules as
``sys.argv[1]`` (numeric tuning parameters follow) and the request payload as
JSON on stdin. Nothing is interpolated into the source text.
"""
from __future__ import annotations

from dataclasses import dataclass

SUMMARIZER_DIR = "summarizer"
DATABASE_SIMILARITY_DIR = "database_similarity"
CHATBOT_DIR = "chatbot"


@dataclass(frozen=True, slots=True)
class CapabilityScript:
    """Inline source for one capability and the module directory it imports."""

    capability: str
    models_subdir: str
    source: str


_EVIDENCE_EXTRACTION = """
import json, sys
sys.path.append(sys.argv[1])
from image_to_text import extract_text_from_image
from pdf_to_text import extract_text_from_pdf
from audio_to_text import extract_text_from_audio
from video_to_text import extract_details_from_video

data = json.loads(sys.stdin.read() or '{}')
complaint = data.get('complaint', '')
image_path = data.get('image_path')
pdf_path = data.get('pdf_path')
audio_path = data.get('audio_path')
video_path = data.get('video_path')

image_text = extract_text_from_image(image_path) if image_path else ''
pdf_text = extract_text_from_pdf(pdf_path) if pdf_path else ''
audio_text = extract_text_from_audio(audio_path) if audio_path else ''
video_details = extract_details_from_video(video_path) if video_path else {"transcribed_audio": "", "text_from_frames": []}
text_from_video_audio = video_details.get('transcribed_audio', '')
text_from_video_frames = ' '.join(video_details.get('text_from_frames', []))
evidence = (complaint, image_text, pdf_text, audio_text, text_from_video_audio, text_from_video_frames)
"""

_COMPLAINT_ANALYSIS = _EVIDENCE_EXTRACTION + """
from summarizer import get_incident_details_from_text, get_narrative_summary

details = get_incident_details_from_text(*evidence)
summary = get_narrative_summary(*evidence)
print(json.dumps({"details": details, "summary": summary}))
"""

_CONTRADICTION_ANALYSIS = _EVIDENCE_EXTRACTION + """
from contradict import contradiction_in_complain_and_evidences

analysis, has_contradiction = contradiction_in_complain_and_evidences(*evidence)
print(json.dumps({"analysis": analysis, "has_contradiction": has_contradiction}))
"""

_DATABASE_SIMILARITY = """
import json, os, sys
db_dir = sys.argv[1]
cross_threshold = float(sys.argv[2])
within_threshold = float(sys.argv[3])
sys.path.append(db_dir)
import database as db

victims_csv = os.path.join(db_dir, 'victim_reports.csv')
official_csv = os.path.join(db_dir, 'official_scam_records.csv')

db1 = db.ensure_all_columns(db.load_csv_safe(victims_csv))
db2 = db.ensure_all_columns(db.load_csv_safe(official_csv))

set_fields = ['phones', 'bank_accounts', 'upi_ids', 'emails', 'websites', 'social_handles', 'ip_addresses', 'crypto_wallets', 'contact_methods']


def split_values(value, normalize):
    return set(normalize(item) for item in str(value).split('|') if item and item != 'nan')


for df in (db1, db2):
    for name in set_fields:
        if 'phone' in name:
            df[name] = df[name].apply(lambda value: split_values(value, db.normalize_phone))
        elif 'email' in name:
            df[name] = df[name].apply(lambda value: split_values(value, db.normalize_email))
        elif 'website' in name:
            df[name] = df[name].apply(lambda value: split_values(value, db.normalize_website))
        else:
            df[name] = df[name].apply(db.normalize_field)

cross = db.cross_db_match(db1, db2, threshold=cross_threshold)
within = db.within_db_match(db1, threshold=within_threshold)
print(json.dumps({"cross_db_matches": cross, "within_db_matches": within}))
"""

_CHATBOT = """
import json, os, sys
chatbot_dir = sys.argv[1]
chunk_size = int(sys.argv[2])
chunk_overlap = int(sys.argv[3])
top_k = int(sys.argv[4])
sys.path.append(chatbot_dir)
import chatbot as cb
from sentence_transformers import SentenceTransformer
import groq
from tavily import TavilyClient

data = json.loads(sys.stdin.read() or '{}')
query = data.get('query', '')

embedding_model = SentenceTransformer(cb.MODEL_NAME)
docs = cb.get_pdf_text_and_metadata([os.path.join(chatbot_dir, name) for name in cb.PDF_FILES])
chunks = cb.chunk_documents(docs, chunk_size=chunk_size, chunk_overlap=chunk_overlap)
index = cb.create_vector_index(chunks, embedding_model)
results = cb.search_index(query, embedding_model, index, chunks, k=top_k)

groq_key = os.environ.get('GROQ_API_KEY')
groq_client = groq.Groq(api_key=groq_key) if groq_key else None
tavily_key = os.environ.get('TAVILY_API_KEY')
tavily_client = TavilyClient(api_key=tavily_key) if tavily_key else None

answer = cb.generate_synthesized_answer(query, results, embedding_model, groq_client, tavily_client)
print(json.dumps({"answer": answer, "sources": [result.get('source') for result in results]}))
"""

_CLASSIFICATION = """
import json, sys
sys.path.append(sys.argv[1])
from classifier import classify_cybercrime

# Expects keys such as crime_type, financial_loss_inr, victims_affected, is_ongoing.
data = json.loads(sys.stdin.read() or '{}')
priority, score = classify_cybercrime(data)
print(json.dumps({"priority": priority, "score": score}))
"""

DEFAULT_SCRIPTS: dict[str, CapabilityScript] = {
    "analysis": CapabilityScript("analysis", SUMMARIZER_DIR, _COMPLAINT_ANALYSIS),
    "similarity": CapabilityScript(
        "similarity", DATABASE_SIMILARITY_DIR, _DATABASE_SIMILARITY
    ),
    "chatbot": CapabilityScript("chatbot", CHATBOT_DIR, _CHATBOT),
    "classification": CapabilityScript(
        "classification", SUMMARIZER_DIR, _CLASSIFICATION
    ),
    "contradictions": CapabilityScript(
        "contradictions", SUMMARIZER_DIR, _CONTRADICTION_ANALYSIS
    ),
}
"""Inline scripts keyed by capability name."""

EXTRACTION_SCRIPTS: dict[str, str] = {
    "pdf": "pdf_to_text.py",
    "image": "image_to_text.py",
    "audio": "audio_to_text.py",
    "video": "video_to_text.py",
}
"""Standalone extractor scripts under the summarizer directory, keyed by file type."""


__all__ = [
    "CHATBOT_DIR",
    "CapabilityScript",
    "DATABASE_SIMILARITY_DIR",
    "DEFAULT_SCRIPTS",
    "EXTRACTION_SCRIPTS",
    "SUMMARIZER_DIR",
]

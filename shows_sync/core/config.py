import os
from dataclasses import dataclass
from dotenv import load_dotenv
load_dotenv()
@dataclass(frozen=True)
class Settings:
    olt_api_base: str = os.getenv("OLT_API_BASE","https://officiallondontheatre.com/wp-json/wp/v2")
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT","30"))
    store_backend: str = os.getenv("STORE_BACKEND","gsheet")
    gsheet_id: str = os.getenv("GSHEET_ID","")
    gsheet_doc_title: str = os.getenv("GSHEET_DOC_TITLE","OLT Shows")
    gsheet_worksheet: str = os.getenv("GSHEET_WORKSHEET","shows")
    media_dir: str = os.getenv("MEDIA_DIR","media")
    log_level: str = os.getenv("LOG_LEVEL","INFO")

settings = Settings()

import os, json, sys, traceback
from pathlib import Path

def log(msg): print(f"[DIAG] {msg}", flush=True)

def mask(v, keep=3):
    if not v: return "<empty>"
    return v[:keep] + "…" + str(len(v))

def main():
    rc = 0

    # A) ENV de base
    log("Python: " + sys.version)
    for k in ["OLT_API_BASE","STORE_BACKEND","GSHEET_ID","GOOGLE_APPLICATION_CREDENTIALS"]:
        v = os.getenv(k, "")
        log(f"env {k}: {mask(v)}")

    # B) Fichier credentials Google (seulement pour le store gsheet)
    if os.getenv("STORE_BACKEND", "gsheet") == "gsheet":
        creds_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS","")
        try:
            p = Path(creds_path)
            log(f"Creds path exists? {p.exists()} size={p.stat().st_size if p.exists() else 0}")
            if p.exists():
                with p.open("r", encoding="utf-8") as f:
                    data = json.load(f)
                log("Creds JSON ok, client_email=" + data.get("client_email","<none>"))
            else:
                log("ERROR: missing GOOGLE_APPLICATION_CREDENTIALS")
                rc = 1
        except Exception as e:
            log("ERROR: reading creds: " + repr(e))
            rc = 1

    # C) Import package
    try:
        import shows_sync.cli
        log("import shows_sync OK: " + (getattr(shows_sync.cli, "__file__", "<pkg>") or "<pkg>"))
    except Exception:
        log("ERROR: cannot import shows_sync")
        traceback.print_exc()
        rc = 1

    # D) Première page de l'API shows
    try:
        import httpx
        from shows_sync.core.config import settings
        r = httpx.get(settings.olt_api_base + "/show", params={"per_page": 1},
                      headers={"Accept": "application/json"}, timeout=settings.request_timeout)
        log(f"API status={r.status_code} total-pages={r.headers.get('X-WP-TotalPages','<none>')}")
        if r.status_code != 200:
            rc = 1
    except Exception:
        log("ERROR: API check failed")
        traceback.print_exc()
        rc = 1

    sys.exit(rc)

if __name__ == "__main__":
    main()

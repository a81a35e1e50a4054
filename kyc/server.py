"""FastAPI server for KYC document verification."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile, status
from fastapi.responses import HTMLResponse

from kyc.config import get_settings
from kyc.errors import SessionBusyError, UserInputError
from kyc.images import from_upload
from kyc.inference import InferenceClient
from kyc.models import CaptureRequest, HealthResponse, SessionSnapshot, SourceRequest
from kyc.session import SessionStore, VerificationSession

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("kyc.server")

settings = get_settings()
inference = InferenceClient(
    settings.openai_api_key,
    settings.model,
    base_url=settings.base_url,
    timeout=settings.request_timeout_s,
)
store = SessionStore(
    inference,
    settings.schema_variant,
    max_image_bytes=settings.max_image_bytes,
    max_sessions=settings.max_sessions,
)

app = FastAPI(title="KYC Verifier")


def get_store() -> SessionStore:
    return store


def _session(session_id: str, sessions: SessionStore) -> VerificationSession:
    try:
        return sessions.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session {session_id}") from exc


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _conflict(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@app.get("/", response_class=HTMLResponse)
async def ui() -> str:
    """Simple local page for uploading or capturing a document photo."""
    return """
<!doctype html><html><head><title>Verificación KYC</title>
<style>body{font-family:sans-serif;max-width:600px;margin:2rem auto;padding:0 1rem}video,img{max-width:100%}</style>
</head><body>
<h2>Verificación KYC</h2>
<p>Sube una imagen de un documento de identidad (DNI, pasaporte, etc.)</p>
<button onclick='useUpload()'>Subir Archivo</button>
<button onclick='useCamera()'>Usar Cámara</button>
<div id='upload'><input id='file' type='file' accept='image/*' onchange='upload()'/></div>
<div id='camera' hidden><video id='video' autoplay playsinline></video><br/>
<button onclick='capture()'>Capturar Foto</button></div>
<button id='verify' onclick='verify()' disabled>Verificar Identidad</button>
<pre id='out'></pre>
<script>
let sid=null, stream=null;
const out=document.getElementById('out');
async function call(path,opts){const r=await fetch('/sessions/'+sid+path,opts);const d=await r.json();
  if(r.ok){show(d);return d;}
  const s=await (await fetch('/sessions/'+sid)).json();setButton(s);out.textContent=d.detail;return s;}
function setButton(s){document.getElementById('verify').disabled=!(s.image)||s.status==='dispatched';}
function show(d){out.textContent=d.display?Object.entries(d.display).map(([k,v])=>k+': '+v).join('\\n'):(d.error||d.status||'');setButton(d);}
async function init(){const r=await fetch('/sessions',{method:'POST'});sid=(await r.json()).session_id;}
window.addEventListener('pagehide',()=>{if(sid)fetch('/sessions/'+sid,{method:'DELETE',keepalive:true});});
function stopStream(){if(stream){stream.getTracks().forEach(t=>t.stop());stream=null;}}
async function useUpload(){stopStream();document.getElementById('camera').hidden=true;document.getElementById('upload').hidden=false;
  await call('/source',{method:'POST',headers:{'content-type':'application/json'},body:JSON.stringify({mode:'upload'})});}
async function useCamera(){stream=await navigator.mediaDevices.getUserMedia({video:true});document.getElementById('video').srcObject=stream;
  document.getElementById('camera').hidden=false;document.getElementById('upload').hidden=true;
  await call('/source',{method:'POST',headers:{'content-type':'application/json'},body:JSON.stringify({mode:'camera'})});}
async function upload(){const f=document.getElementById('file').files[0];if(!f)return;const fd=new FormData();fd.append('image',f);
  await call('/image',{method:'PUT',body:fd});}
async function capture(){const v=document.getElementById('video');const c=document.createElement('canvas');c.width=v.videoWidth;c.height=v.videoHeight;
  c.getContext('2d').drawImage(v,0,0);const data_url=c.toDataURL('image/jpeg');stopStream();
  document.getElementById('camera').hidden=true;document.getElementById('upload').hidden=false;
  await call('/capture',{method:'POST',headers:{'content-type':'application/json'},body:JSON.stringify({data_url})});}
async function verify(){document.getElementById('verify').disabled=true;out.textContent='Verificando...';await call('/verify',{method:'POST'});}
init();
</script>
</body></html>
"""


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(
        inference_configured=inference.available(),
        schema_variant=settings.schema_variant.value,
    )


@app.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(sessions: SessionStore = Depends(get_store)) -> SessionSnapshot:
    session = sessions.create()
    logger.info("Created session %s", session.session_id)
    return session.snapshot()


@app.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str, sessions: SessionStore = Depends(get_store)) -> SessionSnapshot:
    return _session(session_id, sessions).snapshot()


@app.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, sessions: SessionStore = Depends(get_store)) -> None:
    session = _session(session_id, sessions)
    if session.in_progress:
        raise _conflict(SessionBusyError("A verification attempt is already in progress"))
    sessions.discard(session_id)


@app.put("/sessions/{session_id}/image", response_model=SessionSnapshot)
async def set_image(
    session_id: str,
    image: UploadFile = File(..., description="Photo of the identity document."),
    sessions: SessionStore = Depends(get_store),
) -> SessionSnapshot:
    session = _session(session_id, sessions)
    try:
        raw = await from_upload(image, max_bytes=session.max_image_bytes)
        session.set_image(raw)
    except UserInputError as exc:
        raise _bad_request(exc) from exc
    except SessionBusyError as exc:
        raise _conflict(exc) from exc
    finally:
        await image.close()
    return session.snapshot()


@app.post("/sessions/{session_id}/source", response_model=SessionSnapshot)
async def switch_source(
    session_id: str,
    req: SourceRequest,
    sessions: SessionStore = Depends(get_store),
) -> SessionSnapshot:
    session = _session(session_id, sessions)
    try:
        session.switch_source(req.mode)
    except SessionBusyError as exc:
        raise _conflict(exc) from exc
    return session.snapshot()


@app.post("/sessions/{session_id}/capture", response_model=SessionSnapshot)
async def capture(
    session_id: str,
    req: CaptureRequest,
    sessions: SessionStore = Depends(get_store),
) -> SessionSnapshot:
    session = _session(session_id, sessions)
    try:
        session.capture_from_camera(req.data_url)
    except UserInputError as exc:
        raise _bad_request(exc) from exc
    except SessionBusyError as exc:
        raise _conflict(exc) from exc
    return session.snapshot()


@app.post("/sessions/{session_id}/verify", response_model=SessionSnapshot)
async def verify(session_id: str, sessions: SessionStore = Depends(get_store)) -> SessionSnapshot:
    session = _session(session_id, sessions)
    try:
        await session.start_verification()
    except UserInputError as exc:
        raise _bad_request(exc) from exc
    except SessionBusyError as exc:
        raise _conflict(exc) from exc
    return session.snapshot()

"""HTML pages: the compose form and the "link created" confirmation."""

import html

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from ghosttransfer.models.share import LIFETIME_LABELS, ShareResult, VIEW_PRESETS
from ghosttransfer.services.form_controller import FormController
from ghosttransfer.services.qr import qr_download_url, qr_image_url
from ghosttransfer.session import get_controller

router = APIRouter(tags=["pages"])


@router.get("/", response_class=HTMLResponse)
async def compose_page(controller: FormController = Depends(get_controller)):
    """Compose page. Coming back after a created link starts a fresh form."""
    if controller.state.result is not None:
        controller.reset()
    return HTMLResponse(content=_render_compose_page())


@router.get("/created", response_class=HTMLResponse)
async def created_page(controller: FormController = Depends(get_controller)):
    result = controller.state.result
    if not result:
        return HTMLResponse(content=_render_nothing_page(), status_code=404)
    share = ShareResult.model_validate(result)
    return HTMLResponse(content=_render_created_page(share.share_url or ""))


@router.post("/created/reset")
async def created_reset(controller: FormController = Depends(get_controller)):
    """Backs both "Delete" and "Create New": drop the result, go home."""
    controller.reset()
    return RedirectResponse(url="/", status_code=303)


# ── HTML Templates ───────────────────────────────────────────────────────────

_STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { background: #000; color: #d1d5db; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; min-height: 100vh; }
        .container { max-width: 900px; margin: 0 auto; padding: 40px 16px; }
        .title { text-align: center; font-size: 24px; margin-bottom: 32px; }
        .card { background: #0e0e0e; border: 1px solid #27272a; border-radius: 16px; padding: 24px; display: grid; gap: 20px; }
        label { color: #fff; display: block; margin-bottom: 8px; }
        input, textarea, select { width: 100%; background: #161616; border: 1px solid #27272a; color: #e5e7eb; padding: 12px; border-radius: 6px; }
        textarea { height: 112px; }
        .row { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
        .error { color: #ef4444; font-size: 12px; margin-top: 4px; min-height: 14px; }
        .drop { border: 2px dashed #3f3f46; border-radius: 6px; padding: 32px; text-align: center; cursor: pointer; }
        .files { display: grid; grid-template-columns: repeat(3, 1fr); gap: 12px; margin-top: 12px; }
        .file { border: 1px solid #27272a; border-radius: 6px; padding: 10px 14px; position: relative; }
        .file.failed { border-color: #ef4444; cursor: pointer; }
        .file .size { color: #9ca3af; font-size: 12px; }
        .file .remove { position: absolute; top: 8px; right: 10px; background: none; border: none; color: #991b1b; cursor: pointer; }
        .bar { height: 4px; background: #374151; border-radius: 4px; margin-top: 8px; }
        .bar div { height: 4px; background: #28e470; border-radius: 4px; transition: width .3s; }
        .btn { background: #9c1ee9; color: #fff; border: none; padding: 10px 40px; border-radius: 6px; cursor: pointer; font-weight: 600; }
        .btn:disabled { opacity: .5; cursor: not-allowed; }
        .btn.danger { background: #ef4444; }
        .actions { display: flex; gap: 16px; justify-content: center; }
        .qr { display: flex; gap: 32px; justify-content: center; align-items: center; }
        a { color: #9ca3af; }
"""


def _render_compose_page() -> str:
    """Render the compose form. State lives on the server; the script polls it."""
    lifetime_options = "\n".join(
        f'<option value="{_esc(value.value)}">{_esc(label)}</option>'
        for value, label in LIFETIME_LABELS.items()
    )
    view_options = "\n".join(
        f'<option value="{"" if v is None else v}">{"&infin;" if v is None else v}</option>'
        for v in VIEW_PRESETS
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>GhostTransfer</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <p class="title">Send notes and files anonymously<br>with self-destruct system</p>
        <div class="card">
            <div>
                <label for="message">New Message</label>
                <textarea id="message" data-field="message" placeholder="Write your message here..."></textarea>
            </div>
            <div>
                <label>Upload a File</label>
                <div class="error" id="err-files"></div>
                <label class="drop" id="drop">
                    <input type="file" id="file-input" multiple hidden>
                    Drag and drop file here or <u>Choose file</u>
                </label>
                <div class="files" id="files"></div>
            </div>
            <div class="row">
                <div>
                    <label for="lifetime">Lifetime <small>(Optional)</small></label>
                    <select id="lifetime" data-field="lifetime">{lifetime_options}</select>
                    <div class="error" id="err-expires_at"></div>
                </div>
                <div>
                    <label for="max_views">Max Views</label>
                    <input id="max_views" data-field="max_views" type="number" min="1" max="999" placeholder="&infin;">
                    <select id="views-preset">{view_options}</select>
                    <div class="error" id="err-max_views"></div>
                </div>
            </div>
            <div class="row">
                <div>
                    <label for="password">Password <small>(Optional)</small></label>
                    <input id="password" data-field="password" type="password">
                    <div class="error" id="err-password"></div>
                </div>
                <div>
                    <label for="confirm_password">Confirm Password</label>
                    <input id="confirm_password" data-field="confirm_password" type="password">
                    <div class="error" id="err-confirm_password"></div>
                </div>
            </div>
            <div>
                <label for="allowed_ip">IP Restrictions <small>(Optional)</small></label>
                <input id="allowed_ip" data-field="allowed_ip" placeholder="e.g. 192.168.1.1">
                <div class="error" id="err-allowed_ip"></div>
            </div>
            <div class="actions">
                <button class="btn" id="submit" disabled>Create Secret Link</button>
            </div>
            <div class="error" id="err-api" style="text-align:center"></div>
        </div>
    </div>
    <script>
    const api = (path, opts) => fetch('/api/session' + path, opts).then(r => r.json());
    const send = (path, method, body) => api(path, {{
        method, headers: {{'Content-Type': 'application/json'}}, body: JSON.stringify(body)
    }});
    const known = ['files', 'expires_at', 'max_views', 'password', 'confirm_password', 'allowed_ip'];
    const fmt = (n) => {{
        const u = ['B', 'KB', 'MB', 'GB', 'TB']; let i = 0;
        while (n >= 1024 && i < u.length - 1) {{ n /= 1024; i++; }}
        return n.toFixed(n >= 100 || i === 0 ? 0 : 1) + ' ' + u[i];
    }};
    function render(s) {{
        if (s.result) {{ location.href = '/created'; return; }}
        for (const key of known) document.getElementById('err-' + key).textContent = s.errors[key] || '';
        document.getElementById('err-api').textContent = Object.entries(s.errors)
            .filter(([k]) => !known.includes(k)).map(([, v]) => v).join(' ');
        document.getElementById('submit').disabled = !s.can_submit;
        const box = document.getElementById('files');
        box.innerHTML = '';
        for (const e of s.entries) {{
            const el = document.createElement('div');
            el.className = 'file' + (e.status === 'error' ? ' failed' : '');
            const name = document.createElement('div');
            name.textContent = e.name;
            el.appendChild(name);
            const info = document.createElement('div');
            info.className = 'size';
            info.textContent = e.status === 'error' ? 'Failed, click to retry'
                : e.show_success ? '\\u2713' : fmt(e.size_bytes);
            el.appendChild(info);
            if (e.progress !== null) {{
                el.insertAdjacentHTML('beforeend', '<div class="bar"><div style="width:' + e.progress + '%"></div></div>');
            }}
            if (e.status === 'error') el.onclick = () => send('/files/' + e.id + '/retry', 'POST').then(render);
            const rm = document.createElement('button');
            rm.className = 'remove'; rm.title = 'Remove'; rm.textContent = '\\u2715';
            rm.onclick = (ev) => {{ ev.stopPropagation(); send('/files/' + e.id, 'DELETE').then(render); }};
            el.appendChild(rm);
            box.appendChild(el);
        }}
    }}
    function upload(fileList) {{
        if (!fileList || !fileList.length) return;
        const form = new FormData();
        for (const f of fileList) form.append('files', f);
        api('/files', {{method: 'POST', body: form}}).then(render);
    }}
    document.querySelectorAll('[data-field]').forEach(el => el.addEventListener('input', () => {{
        send('/fields', 'PATCH', {{[el.dataset.field]: el.value}}).then(s => {{
            if (el.dataset.field === 'max_views') el.value = s.max_views;
            render(s);
        }});
    }}));
    document.getElementById('views-preset').addEventListener('change', (ev) => {{
        const v = ev.target.value;
        send('/views', 'POST', {{views: v === '' ? null : parseInt(v, 10)}}).then(s => {{
            document.getElementById('max_views').value = s.max_views;
            render(s);
        }});
    }});
    const input = document.getElementById('file-input');
    input.addEventListener('change', () => {{ upload(input.files); input.value = ''; }});
    const drop = document.getElementById('drop');
    ['dragenter', 'dragover'].forEach(t => drop.addEventListener(t, ev => ev.preventDefault()));
    drop.addEventListener('drop', ev => {{ ev.preventDefault(); upload(ev.dataTransfer.files); }});
    document.getElementById('submit').addEventListener('click', () => {{
        document.getElementById('submit').disabled = true;
        send('/submit', 'POST').then(render);
    }});
    setInterval(() => api('').then(render), 300);
    api('').then(render);
    </script>
</body>
</html>"""


def _render_created_page(share_url: str) -> str:
    """Render the confirmation with the share URL and its QR code."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Link created - GhostTransfer</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
        <div class="card">
            <div>
                <label for="secret-url">Your secret URL</label>
                <input id="secret-url" type="text" readonly value="{_esc(share_url)}">
                <button class="btn" type="button"
                    onclick="navigator.clipboard.writeText(document.getElementById('secret-url').value)">Copy</button>
            </div>
            <div class="qr">
                <div>
                    <p>Access with QR code</p>
                    <img alt="QR" width="192" height="192" src="{_esc(qr_image_url(share_url))}">
                </div>
                <a href="{_esc(qr_download_url(share_url))}" download="qrcode.png">Download</a>
            </div>
            <form class="actions" method="post" action="/created/reset">
                <button class="btn danger" type="submit">Delete</button>
                <button class="btn" type="submit">Create New</button>
            </form>
        </div>
    </div>
</body>
</html>"""


def _render_nothing_page() -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>GhostTransfer</title>
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container" style="text-align:center">
        <p>Nothing saved or it has expired.</p>
        <p><a class="btn" href="/">Go Home</a></p>
    </div>
</body>
</html>"""


def _esc(s: str) -> str:
    """HTML-escape a string."""
    return html.escape(str(s)) if s else ""

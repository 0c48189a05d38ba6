"""Client page: upload form plus a gallery of recent uploads.

All state lives in the browser. The page talks to ``/api/upload``,
``/api/files`` and ``/api/auth/session`` and never retries.
"""

import html
import json


def render_home_page(
    bucket: str,
    auth_required: bool,
    sign_in_url: str,
    sign_out_url: str,
) -> str:
    """Return HTML for the upload page."""
    config = json.dumps(
        {
            "authRequired": auth_required,
            "signInUrl": sign_in_url,
            "signOutUrl": sign_out_url,
        }
    ).replace("</", "<\\/")
    bucket_html = html.escape(bucket)
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Oreocat uploads</title>
    <style>
        * {{ box-sizing: border-box; }}
        body {{
            font-family: system-ui, sans-serif;
            margin: 0;
            min-height: 100vh;
            background: linear-gradient(135deg, #f8fafc, #ffffff 50%, #eef2ff);
            color: #0f172a;
        }}
        main {{
            max-width: 56rem;
            margin: 0 auto;
            padding: 4rem 1.5rem;
            display: flex;
            flex-direction: column;
            gap: 2rem;
        }}
        .card {{
            background: #fff;
            border-radius: 1rem;
            padding: 2rem;
            box-shadow: 0 10px 30px rgba(15, 23, 42, 0.08);
        }}
        .bar {{
            display: flex;
            justify-content: space-between;
            align-items: center;
            border: 1px solid #e2e8f0;
            border-radius: 0.75rem;
            padding: 0.75rem 1rem;
            background: rgba(255, 255, 255, 0.8);
        }}
        .muted {{ color: #64748b; font-size: 0.875rem; }}
        .error {{ color: #e11d48; font-size: 0.875rem; }}
        .done {{ color: #047857; font-size: 0.875rem; }}
        .path {{ font-family: monospace; font-size: 0.75rem; word-break: break-all; }}
        button, .button {{
            background: #4f46e5;
            color: #fff;
            border: 0;
            border-radius: 0.5rem;
            padding: 0.6rem 1rem;
            font-weight: 600;
            cursor: pointer;
            text-decoration: none;
        }}
        button:disabled {{ background: #cbd5e1; cursor: not-allowed; }}
        ul.gallery {{
            list-style: none;
            padding: 0;
            display: grid;
            grid-template-columns: repeat(auto-fill, minmax(14rem, 1fr));
            gap: 0.75rem;
        }}
        ul.gallery li {{
            border: 1px solid #f1f5f9;
            border-radius: 0.5rem;
            padding: 0.75rem;
            background: #f8fafc;
        }}
        ul.gallery img, #latest img {{
            width: 100%;
            height: 10rem;
            object-fit: cover;
            border-radius: 0.375rem;
        }}
        .placeholder {{
            height: 10rem;
            display: flex;
            align-items: center;
            justify-content: center;
            border: 1px dashed #e2e8f0;
            border-radius: 0.375rem;
        }}
    </style>
</head>
<body>
<main>
    <header>
        <p class="muted">Oreocat</p>
        <h1>Upload files to the <code>{bucket_html}</code> bucket</h1>
        <p class="muted">Files are stored in object storage and shown here through time-limited signed URLs.</p>
    </header>

    <div class="bar">
        <span id="session-status" class="muted">Checking session...</span>
        <a id="session-action" class="button" href="#" hidden></a>
    </div>

    <section id="signed-out" class="card" hidden>
        <p><strong>Sign in to manage your private library</strong></p>
        <p class="muted">Uploads are stored under your user folder in the private bucket.</p>
    </section>

    <section id="workspace" class="card" hidden>
        <form id="upload-form">
            <input id="file" name="file" type="file" accept="image/*,application/pdf">
            <button id="upload-button" type="submit">Upload</button>
            <p id="upload-message" class="muted">We will return a signed URL so you can render it below.</p>
        </form>

        <div id="latest">
            <p><strong>Latest upload</strong></p>
            <p class="muted">No file uploaded yet.</p>
        </div>

        <div>
            <p>
                <strong>Recent uploads</strong>
                <button id="refresh-button" type="button">Refresh</button>
            </p>
            <p id="files-message" class="muted"></p>
            <ul id="gallery" class="gallery"></ul>
        </div>
    </section>
</main>
<script>
const CONFIG = {config};

// upload: idle | uploading | done | error
// files:  idle | loading | error
const state = {{ user: null, upload: "idle", files: "idle" }};

const $ = (id) => document.getElementById(id);

function canUseStorage() {{
    return !CONFIG.authRequired || state.user !== null;
}}

function setUploadStatus(status, message) {{
    state.upload = status;
    const el = $("upload-message");
    el.className = status === "error" ? "error" : status === "done" ? "done" : "muted";
    el.textContent = message;
    $("upload-button").disabled = status === "uploading";
    $("upload-button").textContent = status === "uploading" ? "Uploading..." : "Upload";
}}

function preview(url, alt) {{
    if (!url) {{
        const box = document.createElement("div");
        box.className = "placeholder muted";
        box.textContent = "No preview available";
        return box;
    }}
    const img = document.createElement("img");
    img.src = url;
    img.alt = alt;
    return img;
}}

function renderLatest(result) {{
    const latest = $("latest");
    latest.replaceChildren();
    const title = document.createElement("p");
    title.innerHTML = "<strong>Latest upload</strong>";
    latest.append(title);
    const url = result.signedUrl || result.publicUrl;
    latest.append(preview(url, "Uploaded file preview"));
    const path = document.createElement("p");
    path.className = "path";
    path.textContent = result.bucket + ": " + result.path;
    latest.append(path);
    if (url) {{
        const link = document.createElement("a");
        link.href = url;
        link.target = "_blank";
        link.rel = "noreferrer";
        link.textContent = "View file";
        latest.append(link);
    }}
}}

function renderFiles(files) {{
    const gallery = $("gallery");
    gallery.replaceChildren();
    $("files-message").textContent = files.length === 0 ? "No uploads yet." : "";
    for (const file of files) {{
        const item = document.createElement("li");
        item.append(preview(file.signedUrl, file.path));
        const path = document.createElement("div");
        path.className = "path";
        path.textContent = file.path;
        item.append(path);
        if (file.signedUrl) {{
            const link = document.createElement("a");
            link.href = file.signedUrl;
            link.target = "_blank";
            link.rel = "noreferrer";
            link.textContent = "Open signed URL";
            item.append(link);
        }}
        gallery.append(item);
    }}
}}

async function loadFiles() {{
    if (!canUseStorage()) {{
        renderFiles([]);
        state.files = "idle";
        return;
    }}
    state.files = "loading";
    $("refresh-button").disabled = true;
    $("refresh-button").textContent = "Refreshing...";
    $("files-message").className = "muted";
    try {{
        const res = await fetch("/api/files", {{ credentials: "same-origin" }});
        const json = await res.json();
        if (!res.ok) {{
            throw new Error(json.error || "Failed to fetch files.");
        }}
        renderFiles(json.files || []);
        state.files = "idle";
    }} catch (error) {{
        state.files = "error";
        $("files-message").className = "error";
        $("files-message").textContent = error.message || "Failed to fetch files.";
    }} finally {{
        $("refresh-button").disabled = false;
        $("refresh-button").textContent = "Refresh";
    }}
}}

async function handleSubmit(event) {{
    event.preventDefault();
    if (!canUseStorage()) {{
        setUploadStatus("error", "Sign in to upload files.");
        return;
    }}
    const file = $("file").files[0];
    if (!file) {{
        setUploadStatus("error", "Pick a file first.");
        return;
    }}
    setUploadStatus("uploading", "Uploading...");
    const formData = new FormData();
    formData.append("file", file);
    try {{
        const res = await fetch("/api/upload", {{
            method: "POST",
            body: formData,
            credentials: "same-origin",
        }});
        const json = await res.json();
        if (!res.ok) {{
            throw new Error(json.error || "Upload failed.");
        }}
        renderLatest(json);
        setUploadStatus("done", "Upload complete.");
    }} catch (error) {{
        setUploadStatus("error", error.message || "Upload failed.");
    }} finally {{
        loadFiles();
    }}
}}

async function loadSession() {{
    try {{
        const res = await fetch("/api/auth/session", {{ credentials: "same-origin" }});
        const json = await res.json();
        state.user = res.ok ? json.user : null;
    }} catch (error) {{
        state.user = null;
    }}
    const user = state.user;
    const action = $("session-action");
    action.hidden = false;
    if (user) {{
        $("session-status").textContent = "Signed in as " + (user.email || user.name || user.id);
        action.textContent = "Sign out";
        action.href = CONFIG.signOutUrl;
    }} else {{
        $("session-status").textContent = "You are not signed in.";
        action.textContent = "Sign in";
        action.href = CONFIG.signInUrl;
    }}
    $("signed-out").hidden = canUseStorage();
    $("workspace").hidden = !canUseStorage();
}}

$("upload-form").addEventListener("submit", handleSubmit);
$("refresh-button").addEventListener("click", loadFiles);
$("file").addEventListener("change", () => setUploadStatus("idle", ""));

loadSession().then(loadFiles);
</script>
</body>
</html>
"""

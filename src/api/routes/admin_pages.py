"""Admin — onglet PAGES DYNAMIQUES (liste, recherche, suppression)."""
import html
import os

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from ...database import db_list_pages, get_db, jl

router = APIRouter(tags=["Admin Pages"])

PAGE_TYPE_COLORS = {"landing": "#e94560", "content": "#2ecc71", "category": "#e9a020",
                    "brand": "#3498db", "custom": "#888"}


def _check_token(request: Request):
    token = request.query_params.get("token") or request.cookies.get("admin_token", "")
    if token != os.getenv("ADMIN_TOKEN", "changeme"):
        raise HTTPException(403, "Accès refusé")
    return token


def _btn_style(bg: str) -> str:
    return f"background:{bg};color:#ccc;border:none;padding:4px 8px;border-radius:4px;cursor:pointer;font-size:11px"


@router.get("/admin/dynamic-pages", response_class=HTMLResponse)
def dynamic_pages_page(request: Request, search: str = "", page_type: str = "all",
                       db: Session = Depends(get_db)):
    token = _check_token(request)
    pages, total = db_list_pages(db, 1, 100, search.strip(), page_type)

    rows = ""
    for p in pages:
        color = PAGE_TYPE_COLORS.get(p.page_type, "#aaa")
        status = "✅ Publiée" if p.is_published else "— Brouillon"
        rows += f"""<tr id="row-{p.id}">
  <td>{html.escape(p.title)}</td>
  <td style="color:#aaa">/{html.escape(p.slug)}</td>
  <td style="color:{color};font-weight:bold">{p.page_type}</td>
  <td>{status}</td>
  <td style="text-align:center">{len(jl(p.grid_cells))}</td>
  <td style="color:#aaa">{p.updated_at.strftime("%d/%m/%y %H:%M") if p.updated_at else "—"}</td>
  <td style="padding:6px">
    <button onclick="deletePage('{p.id}',this)" style="{_btn_style('#4a1a1a')}">🗑</button>
  </td>
</tr>"""
    if not rows:
        rows = '<tr><td colspan="7" style="color:#666;text-align:center;padding:30px">Aucune page</td></tr>'

    return HTMLResponse(f"""<!DOCTYPE html><html lang="fr"><head>
<meta charset="UTF-8"><meta name="viewport" content="width=device-width,initial-scale=1">
<title>Pages dynamiques — Admin</title>
<style>*{{box-sizing:border-box;margin:0;padding:0}}body{{font-family:'Segoe UI',sans-serif;background:#0f0f1a;color:#e8e8f0}}
table{{border-collapse:collapse;width:100%}}th{{background:#16213e;color:#aaa;padding:10px;font-size:11px;text-align:left}}
td{{padding:9px 10px;border-bottom:1px solid #1a1a2e;font-size:12px;vertical-align:middle}}
tr:hover td{{background:#12122a}}
input{{background:#0f0f1a;border:1px solid #2a2a4e;color:#e8e8f0;padding:7px 10px;border-radius:4px;font-size:12px}}</style></head><body>
<div style="padding:20px">
<div style="display:flex;justify-content:space-between;align-items:center;margin-bottom:16px">
  <h1 style="color:#fff;font-size:18px">🧩 Pages dynamiques ({total})</h1>
  <form method="get" style="display:flex;gap:8px">
    <input type="hidden" name="token" value="{html.escape(token)}">
    <input name="search" placeholder="Rechercher…" value="{html.escape(search)}">
  </form>
</div>
<table>
<thead><tr><th>Titre</th><th>Slug</th><th>Type</th><th>Statut</th><th>Cellules</th><th>Modifiée</th><th></th></tr></thead>
<tbody>{rows}</tbody>
</table>
</div>
<script>
async function deletePage(id, btn) {{
  if(!confirm('Supprimer cette page ?')) return;
  const r = await fetch('/api/admin/dynamic-pages/' + id, {{method: 'DELETE'}});
  if(r.ok) document.getElementById('row-' + id).remove();
}}
</script>
</body></html>""")

from __future__ import annotations

import base64
import io
import logging
import os
from dash import Dash, html, dcc, Input, Output, State, ALL, ctx, no_update

from endoreport.editor import apply_action
from endoreport.io import biopsies_to_frame, load_stain_config_csv, stain_config_to_frame
from endoreport.preview import strip_markup
from endoreport.schema import (
    BiopsyLocation,
    DIAGNOSIS_OPTIONS,
    FEATURE_BAGS,
    FINDING_LABELS,
    NOT_DONE_FINDINGS,
    PREDEFINED_NOTES,
    PREDEFINED_STAIN_NAMES,
    SEVERITY_OPTIONS,
    SEVERITY_OPTIONS_WITH_NOT_DONE,
    SITE_OPTIONS,
    SUB_SITE_OPTIONS,
    SYNAPTOPHYSIN_PHRASES,
)
from endoreport.stains import add_stain, remove_stain
from endoreport.store import ReportSession

APP_TITLE = "Endoskopi Raporlama"

HOST = os.getenv("ENDOREPORT_HOST", "0.0.0.0")
PORT = int(os.getenv("ENDOREPORT_PORT", "8050"))
DEBUG = os.getenv("ENDOREPORT_DEBUG", "").strip().lower() in {"1", "true", "yes"}
LOG_LEVEL = os.getenv("ENDOREPORT_LOG_LEVEL", "INFO").upper()

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

SYNAPTOPHYSIN_LABELS = {"none": "Yok", "linear": "Lineer", "micronodular": "Mikronodüler"}


def buffer_from_upload(contents: str) -> io.BytesIO:
    """Dash upload contents: 'data:...;base64,XXXXX'"""
    _, content_string = contents.split(",", 1)
    decoded = base64.b64decode(content_string)
    return io.BytesIO(decoded)


def _clicked() -> bool:
    """True when the triggering input is a real click (not a freshly rendered button)."""
    return bool(ctx.triggered) and bool(ctx.triggered[0].get("value"))


# ----------------------------
# Editor components
# ----------------------------
def _chip(biopsy, action, value, label, selected=False):
    return html.Button(
        label,
        id={"type": "bx-action", "biopsy": biopsy.id, "action": action, "value": value},
        n_clicks=0,
        className="chip selected" if selected else "chip",
    )


def _text_entry(biopsy, field, action, placeholder, value=""):
    return html.Div(
        className="row",
        children=[
            dcc.Input(
                id={"type": "bx-input", "field": field},
                value=value,
                type="text",
                placeholder=placeholder,
                style={"flex": "1"},
            ),
            _chip(biopsy, action, field, "Ekle" if action != "eosinophil" else "Kaydet"),
        ],
    )


def _section(title, *children):
    return html.Div(style={"marginTop": "12px"}, children=[html.H4(title), *children])


def render_editor(biopsy, index):
    loc = biopsy.location
    parts = [
        html.Div(
            className="row",
            children=[
                html.H3(f"Biyopsi #{index + 1} - {loc.value}"),
                html.Button("Sil", id={"type": "bx-remove", "biopsy": biopsy.id}, n_clicks=0),
            ],
        ),
        _section(
            "Lokasyon",
            html.Div([_chip(biopsy, "site", s, s, biopsy.main_location == s) for s in SITE_OPTIONS[loc]]),
        ),
    ]

    if SUB_SITE_OPTIONS[loc]:
        parts.append(_section(
            "Alt lokasyon",
            html.Div([
                _chip(biopsy, "sub_site", s, s, s in biopsy.sub_locations) for s in SUB_SITE_OPTIONS[loc]
            ]),
        ))
    parts.append(_text_entry(biopsy, "customLocation", "custom_location", "Özel lokasyon..."))

    if loc == BiopsyLocation.STOMACH:
        toggles = []
        for name, label in FINDING_LABELS.items():
            options = SEVERITY_OPTIONS_WITH_NOT_DONE if name in NOT_DONE_FINDINGS else SEVERITY_OPTIONS
            current = getattr(biopsy.findings, name)
            toggles.append(html.Div([
                html.Label(label),
                html.Div([_chip(biopsy, f"finding:{name}", o, o, current == o) for o in options]),
            ]))
        parts.append(_section("Bulgular", *toggles))

    parts.append(_section(
        "Tanı",
        html.Div([
            _chip(biopsy, "diagnosis", d, d, biopsy.custom_diagnosis == d) for d in DIAGNOSIS_OPTIONS[loc]
        ]),
        _text_entry(biopsy, "customDiagnosis", "custom_diagnosis", "Özel tanı ekle..."),
    ))

    notes = []
    for i, note in enumerate(biopsy.custom_notes):
        notes.append(html.Li([
            html.Span(note),
            _chip(biopsy, "note_up", i, "↑"),
            _chip(biopsy, "note_down", i, "↓"),
            _chip(biopsy, "remove_note", i, "Sil"),
        ]))
    parts.append(_section(
        "Hazır notlar",
        html.Div([
            _chip(biopsy, "predefined_note", n, n, n in biopsy.custom_notes) for n in PREDEFINED_NOTES[loc]
        ]),
        html.H4("Özel notlar"),
        _text_entry(biopsy, "newNote", "add_note", "Yeni not ekle..."),
        html.Ul(notes),
    ))

    for bag, (bag_loc, table) in FEATURE_BAGS.items():
        features = getattr(biopsy, bag)
        if bag_loc != loc or features is None:
            continue
        chips = [_chip(biopsy, f"feature:{bag}", k, label, bool(features.get(k))) for k, label in table.items()]
        if bag == "stomach_features":
            chips.append(html.Div([
                html.Label("Sinaptofizin"),
                *[
                    _chip(biopsy, "synaptophysin", k, SYNAPTOPHYSIN_LABELS[k], features.get("synaptophysin") == k)
                    for k in SYNAPTOPHYSIN_PHRASES
                ],
            ]))
        parts.append(_section("Özellikler", *chips))

    parts.append(_section(
        "BBA'da eozinofil sayısı",
        _text_entry(biopsy, "eosinophilCount", "eosinophil", "Eozinofil sayısı...", biopsy.eosinophil_count),
    ))

    parts.append(_section(
        "Özel boyalar",
        _text_entry(biopsy, "newStain", "add_stain", "Boya ismi..."),
        html.Ul([
            html.Li([html.Span(s), _chip(biopsy, "remove_stain", i, "Sil")])
            for i, s in enumerate(biopsy.custom_stains)
        ]),
    ))

    return html.Div(className="card", children=parts)


def render_preview(session):
    children = []
    for i, line in enumerate(session.report_lines()):
        if i:
            children.append("\n")
        children.append(html.Mark(line.text) if line.is_highlighted(session.active_field) else line.text)
    return children


def render_stain_list(config):
    blocks = []
    for loc in BiopsyLocation:
        items = [
            html.Li([
                html.Span(f"{s.name}: {s.description}"),
                html.Button("Sil", id={"type": "remove-stain", "location": loc.value, "index": i}, n_clicks=0),
            ])
            for i, s in enumerate(config.get(loc) or [])
        ]
        blocks.append(html.Div([html.H4(loc.value), html.Ul(items) if items else html.Div("-", className="small")]))
    return blocks


app = Dash(__name__, title=APP_TITLE, suppress_callback_exceptions=True)
server = app.server

app.layout = html.Div(
    style={"maxWidth": "1200px", "margin": "18px auto", "padding": "0 10px"},
    children=[
        html.H1(APP_TITLE),
        html.Div(
            "Sık rastlanılan gastrointestinal sistem endoskopik biyopsileri için rapor metni oluşturur.",
            className="small",
        ),
        dcc.Store(id="store-session", data=ReportSession().to_dict()),
        html.Div(
            className="card",
            style={"marginTop": "12px"},
            children=[
                html.H3("1) Biyopsi ekle"),
                html.Div(
                    className="row",
                    children=[
                        html.Button(loc.value, id={"type": "add-biopsy", "location": loc.value}, n_clicks=0)
                        for loc in BiopsyLocation
                    ] + [html.Button("Tümünü sıfırla", id="btn-reset", n_clicks=0)],
                ),
                html.Div(id="biopsy-tabs", className="row", style={"marginTop": "8px"}),
            ],
        ),
        html.Div(
            className="row",
            style={"marginTop": "12px"},
            children=[
                html.Div(id="editor", className="col", style={"flex": "3"}),
                html.Div(
                    className="card col",
                    style={"flex": "2"},
                    children=[
                        html.Div(
                            className="row",
                            children=[
                                html.H3("Rapor Çıktısı"),
                                dcc.Clipboard(id="clipboard", title="Kopyala"),
                            ],
                        ),
                        html.Pre(
                            id="preview",
                            style={"whiteSpace": "pre-wrap", "fontSize": "13px", "minHeight": "300px"},
                        ),
                        html.Button("Raporu indir (.txt)", id="btn-dl-report"),
                        dcc.Download(id="dl-report"),
                        html.Button("Biyopsi tablosu (CSV)", id="btn-dl-biopsies"),
                        dcc.Download(id="dl-biopsies"),
                    ],
                ),
            ],
        ),
        html.Div(
            className="card",
            style={"marginTop": "12px"},
            children=[
                html.H3("Otomatik boya ayarları"),
                html.Div(id="stain-list"),
                html.Div(
                    className="row",
                    children=[
                        dcc.Dropdown(
                            id="stain-location",
                            options=[{"label": loc.value, "value": loc.value} for loc in BiopsyLocation],
                            value=BiopsyLocation.STOMACH.value,
                            clearable=False,
                            style={"minWidth": "200px"},
                        ),
                        dcc.Input(id="stain-name", type="text", placeholder="Boya adı", value=""),
                        dcc.Input(id="stain-description", type="text", placeholder="Boya açıklaması", value=""),
                        html.Button("Yeni boya ekle", id="btn-add-stain", n_clicks=0),
                    ],
                ),
                html.Div([
                    html.Button(name, id={"type": "stain-shortcut", "name": name}, n_clicks=0)
                    for name in PREDEFINED_STAIN_NAMES
                ]),
                html.Div(
                    className="row",
                    style={"marginTop": "8px"},
                    children=[
                        html.Button("Boya ayarlarını indir (CSV)", id="btn-dl-stains"),
                        dcc.Download(id="dl-stains"),
                        dcc.Upload(
                            id="upload-stains",
                            children=html.Div(["Boya CSV sürükleyin veya ", html.A("seçin")]),
                            multiple=False,
                            style={
                                "width": "100%",
                                "height": "40px",
                                "lineHeight": "40px",
                                "borderWidth": "2px",
                                "borderStyle": "dashed",
                                "borderRadius": "12px",
                                "textAlign": "center",
                            },
                        ),
                    ],
                ),
                html.Div(id="stain-status", className="small", style={"marginTop": "8px"}),
            ],
        ),
    ],
)


@app.callback(
    Output("biopsy-tabs", "children"),
    Output("editor", "children"),
    Output("preview", "children"),
    Output("stain-list", "children"),
    Input("store-session", "data"),
)
def render_session(data):
    session = ReportSession.from_dict(data)
    biopsies = session.biopsies
    active_id = session.active_biopsy_id

    tabs = [
        html.Button(
            f"{i + 1} - {b.sub_location or b.location.value}",
            id={"type": "select-biopsy", "biopsy": b.id},
            n_clicks=0,
            className="chip selected" if b.id == active_id else "chip",
        )
        for i, b in enumerate(biopsies)
    ]

    if active_id is None:
        editor = html.Div("Düzenlemek için bir biyopsi ekleyin veya seçin.", className="card small")
    else:
        index = session.store.index_of(active_id)
        editor = render_editor(biopsies[index], index)

    return tabs, editor, render_preview(session), render_stain_list(session.stain_config)


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input({"type": "add-biopsy", "location": ALL}, "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def add_biopsy(n_clicks, data):
    if not _clicked():
        return no_update
    session = ReportSession.from_dict(data)
    session.add_biopsy(BiopsyLocation(ctx.triggered_id["location"]))
    return session.to_dict()


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input({"type": "select-biopsy", "biopsy": ALL}, "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def select_biopsy(n_clicks, data):
    if not _clicked():
        return no_update
    session = ReportSession.from_dict(data)
    session.focus(ctx.triggered_id["biopsy"])
    return session.to_dict()


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input({"type": "bx-remove", "biopsy": ALL}, "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def remove_biopsy(n_clicks, data):
    if not _clicked():
        return no_update
    session = ReportSession.from_dict(data)
    session.remove_biopsy(ctx.triggered_id["biopsy"])
    return session.to_dict()


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input({"type": "bx-action", "biopsy": ALL, "action": ALL, "value": ALL}, "n_clicks"),
    State({"type": "bx-input", "field": ALL}, "value"),
    State({"type": "bx-input", "field": ALL}, "id"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def edit_biopsy(n_clicks, input_values, input_ids, data):
    if not _clicked():
        return no_update
    trig = ctx.triggered_id
    session = ReportSession.from_dict(data)
    biopsy = session.store.get(trig["biopsy"])
    if biopsy is None:
        return no_update

    inputs = {i["field"]: v for i, v in zip(input_ids, input_values)}
    updated, field_key = apply_action(biopsy, trig["action"], trig["value"], inputs)
    if field_key is None:
        logger.warning("Unknown editor action %r", trig["action"])
        return no_update

    session.update_biopsy(updated, field_key)
    return session.to_dict()


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input("btn-reset", "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def reset_all(n, data):
    session = ReportSession.from_dict(data)
    session.reset()
    return session.to_dict()


@app.callback(
    Output("clipboard", "content"),
    Input("clipboard", "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def copy_report(n, data):
    session = ReportSession.from_dict(data)
    return strip_markup(session.report_markup())


# ----------------------------
# Stain configuration
# ----------------------------
@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Output("stain-name", "value"),
    Output("stain-description", "value"),
    Input("btn-add-stain", "n_clicks"),
    State("stain-location", "value"),
    State("stain-name", "value"),
    State("stain-description", "value"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def add_configured_stain(n, location, name, description, data):
    session = ReportSession.from_dict(data)
    updated = add_stain(session.stain_config, BiopsyLocation(location), name or "", description or "")
    if updated is session.stain_config:
        return no_update, no_update, no_update
    session.set_stain_config(updated)
    return session.to_dict(), "", ""


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Input({"type": "remove-stain", "location": ALL, "index": ALL}, "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def remove_configured_stain(n_clicks, data):
    if not _clicked():
        return no_update
    trig = ctx.triggered_id
    session = ReportSession.from_dict(data)
    session.set_stain_config(remove_stain(session.stain_config, BiopsyLocation(trig["location"]), trig["index"]))
    return session.to_dict()


@app.callback(
    Output("stain-name", "value", allow_duplicate=True),
    Input({"type": "stain-shortcut", "name": ALL}, "n_clicks"),
    prevent_initial_call=True,
)
def use_stain_shortcut(n_clicks):
    if not _clicked():
        return no_update
    return ctx.triggered_id["name"]


@app.callback(
    Output("store-session", "data", allow_duplicate=True),
    Output("stain-status", "children"),
    Input("upload-stains", "contents"),
    State("upload-stains", "filename"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def upload_stains(contents, filename, data):
    if not contents:
        return no_update, no_update
    try:
        config = load_stain_config_csv(buffer_from_upload(contents))
    except Exception as e:
        logger.warning("Stain CSV rejected (%s): %s", filename, e)
        return no_update, f"Boya CSV hatası: {e}"

    session = ReportSession.from_dict(data)
    session.set_stain_config(config)
    return session.to_dict(), f"Boya ayarları yüklendi: {filename}"


# ----------------------------
# Downloads
# ----------------------------
@app.callback(
    Output("dl-stains", "data"),
    Input("btn-dl-stains", "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def download_stains(n, data):
    df = stain_config_to_frame(ReportSession.from_dict(data).stain_config)
    return dcc.send_data_frame(df.to_csv, "boya_ayarlari.csv", index=False)


@app.callback(
    Output("dl-biopsies", "data"),
    Input("btn-dl-biopsies", "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def download_biopsies(n, data):
    biopsies = ReportSession.from_dict(data).biopsies
    if not biopsies:
        return no_update
    return dcc.send_data_frame(biopsies_to_frame(biopsies).to_csv, "biyopsiler.csv", index=False)


@app.callback(
    Output("dl-report", "data"),
    Input("btn-dl-report", "n_clicks"),
    State("store-session", "data"),
    prevent_initial_call=True,
)
def download_report(n, data):
    text = ReportSession.from_dict(data).report_text()
    if not text:
        return no_update
    return dcc.send_string(text, "rapor.txt")


if __name__ == "__main__":
    logger.info("Starting %s on %s:%d", APP_TITLE, HOST, PORT)
    app.run(debug=DEBUG, host=HOST, port=PORT)

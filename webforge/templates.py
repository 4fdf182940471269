"""
Static file generators (no model involved, guaranteed valid) and the Jinja2
preview documents.
"""
import json
import textwrap

from jinja2 import DictLoader, Environment, select_autoescape

from webforge.signatures import MOUNT_ID

# ── CDN runtime ───────────────────────────────────────────────────────────────

REACT_VERSION = "18.2.0"
BABEL_URL     = "https://unpkg.com/@babel/standalone@7/babel.min.js"
TAILWIND_URL  = "https://cdn.tailwindcss.com"
ESM_CDN       = "https://esm.sh"

RUNTIME_IMPORTS = {
    "react":             f"{ESM_CDN}/react@{REACT_VERSION}",
    "react/":            f"{ESM_CDN}/react@{REACT_VERSION}/",
    "react-dom":         f"{ESM_CDN}/react-dom@{REACT_VERSION}",
    "react-dom/":        f"{ESM_CDN}/react-dom@{REACT_VERSION}/",
    "react-dom/client":  f"{ESM_CDN}/react-dom@{REACT_VERSION}/client",
    "react/jsx-runtime": f"{ESM_CDN}/react@{REACT_VERSION}/jsx-runtime",
}


def package_url(specifier: str) -> str:
    """esm.sh URL for a bare import, sharing the page's single React copy."""
    return f"{ESM_CDN}/{specifier}?external=react,react-dom"


# ── Project files ─────────────────────────────────────────────────────────────

def entry_point(stylesheet_import: str = "./index.css", mount_id: str = MOUNT_ID) -> str:
    return textwrap.dedent(f"""\
        import React from 'react'
        import ReactDOM from 'react-dom/client'
        import App from './App'
        import '{stylesheet_import}'

        ReactDOM.createRoot(document.getElementById('{mount_id}')).render(
          <React.StrictMode>
            <App />
          </React.StrictMode>
        )
        """)


def app_wrapper(import_path: str, component: str) -> str:
    """App.jsx that renders exactly one existing component."""
    return textwrap.dedent(f"""\
        import React from 'react'
        import {component} from '{import_path}'

        export default function App() {{
          return <{component} />
        }}
        """)


PLACEHOLDER_APP = textwrap.dedent("""\
    import React from 'react'

    export default function App() {
      return (
        <div className="flex min-h-screen flex-col items-center justify-center p-4">
          <div className="max-w-md rounded-lg bg-white p-6 shadow-md">
            <h1 className="mb-4 text-center text-2xl font-bold">Generated UI</h1>
            <p className="text-center text-gray-600">Your application is ready!</p>
          </div>
        </div>
      )
    }
    """)


def index_html(entry_path: str, title: str = "Generated UI", mount_id: str = MOUNT_ID) -> str:
    return textwrap.dedent(f"""\
        <!DOCTYPE html>
        <html lang="en">
        <head>
          <meta charset="UTF-8" />
          <meta name="viewport" content="width=device-width,initial-scale=1.0" />
          <title>{title}</title>
        </head>
        <body>
          <div id="{mount_id}"></div>
          <script type="module" src="/{entry_path}"></script>
        </body>
        </html>
        """)


TAILWIND_DIRECTIVES = "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n\n"

BASELINE_RESET = textwrap.dedent("""\
    *, *::before, *::after { box-sizing: border-box; }

    body {
      font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
      margin: 0;
      padding: 0;
    }
    """)


def stylesheet(tailwind: bool) -> str:
    return (TAILWIND_DIRECTIVES if tailwind else "") + BASELINE_RESET


TAILWIND_CONFIG = textwrap.dedent("""\
    /** @type {import('tailwindcss').Config} */
    export default {
      content: ['./index.html', './src/**/*.{js,ts,jsx,tsx}'],
      theme: {
        extend: {},
      },
      plugins: [],
    }
    """)

POSTCSS_CONFIG = "export default { plugins: { tailwindcss: {}, autoprefixer: {} } }\n"


# ── Preview documents ─────────────────────────────────────────────────────────

LIVE_DOCUMENT = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
{% if tailwind %}<script src="{{ tailwind_url }}"></script>
{% endif %}{% for sheet in stylesheets %}<style data-path="{{ sheet.path }}"{% if sheet.tailwind %} type="text/tailwindcss"{% endif %}>
{{ sheet.css|safe }}
</style>
{% endfor %}<script src="{{ babel_url }}"></script>
<script>
Babel.registerPreset('tsx', { presets: [[Babel.availablePresets['typescript'], { allExtensions: true, isTSX: true }]] });
</script>
</head>
<body>
<div id="{{ mount_id }}"></div>
<script type="application/json" id="preview-imports">
{{ import_map|safe }}
</script>
{% for module in modules %}<script type="text/x-preview-module" data-path="{{ module.path }}" data-presets="{{ module.presets }}">
// {{ module.path }}
{{ module.source|safe }}
</script>
{% endfor %}<script type="text/x-preview-mount">
{{ mount|safe }}
</script>
<script>
(function () {
  var map = JSON.parse(document.getElementById('preview-imports').textContent);
  document.querySelectorAll('script[type="text/x-preview-module"]').forEach(function (el) {
    var out = Babel.transform(el.textContent, {
      filename: el.dataset.path,
      presets: el.dataset.presets.split(','),
    }).code;
    map.imports['{{ module_prefix }}' + el.dataset.path] =
      URL.createObjectURL(new Blob([out], { type: 'text/javascript' }));
  });
  var importmap = document.createElement('script');
  importmap.type = 'importmap';
  importmap.textContent = JSON.stringify(map);
  document.head.appendChild(importmap);
  var mount = document.createElement('script');
  mount.type = 'module';
  mount.textContent = document.querySelector('script[type="text/x-preview-mount"]').textContent;
  document.body.appendChild(mount);
})();
</script>
</body>
</html>
"""


HOST_DOCUMENT = """\
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ title }}</title>
</head>
<body>
<div id="{{ mount_id }}"></div>
</body>
</html>
"""

HEAD_ASSETS = """\
{% if tailwind %}<script src="{{ tailwind_url }}"></script>
{% endif %}{% for sheet in stylesheets %}<style data-path="{{ sheet.path }}"{% if sheet.tailwind %} type="text/tailwindcss"{% endif %}>
{{ sheet.css|safe }}
</style>
{% endfor %}"""


def _jinja_env() -> Environment:
    return Environment(
        loader=DictLoader({
            "live.html":   LIVE_DOCUMENT,
            "host.html":   HOST_DOCUMENT,
            "assets.html": HEAD_ASSETS,
        }),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )


_ENV = _jinja_env()


def render(name: str, **context) -> str:
    context.setdefault("tailwind_url", TAILWIND_URL)
    context.setdefault("babel_url", BABEL_URL)
    return _ENV.get_template(name).render(**context)


def import_map(specifiers) -> str:
    imports = dict(RUNTIME_IMPORTS)
    for specifier in specifiers:
        if specifier not in imports:
            imports[specifier] = package_url(specifier)
    return json.dumps({"imports": imports}, indent=2)


def script_safe(code: str) -> str:
    """Keep embedded source from closing its own <script>/<style> element."""
    return code.replace("</script", "<\\/script").replace("</style", "<\\/style")

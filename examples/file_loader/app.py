"""File-based templates -- the most common real-world pattern.

Loads pages from disk with FileSystemLoader. Each page includes shared
partials by a path relative to itself, and parsed trees are cached so the
second render of a page skips parsing.

Run:
    python app.py
"""

from pathlib import Path

from tmark import DomCache, Environment, FileSystemLoader

templates_dir = Path(__file__).parent / "templates"
dom_cache = DomCache()
env = Environment(
    loader=FileSystemLoader(templates_dir),
    cache=True,
    dom_cache=dom_cache,
    markers=False,
    globals={"site_name": "My Site"},
)

nav_items = [
    {"url": "/", "label": "Home"},
    {"url": "/about", "label": "About"},
]

home_output = env.get_template("home.html").render(
    nav_items=nav_items,
    title="Welcome",
    message="This is a tmark-powered site built from plain HTML files.",
)

about_output = env.get_template("about.html").render(
    nav_items=nav_items,
    title="About Us",
    description="Directives are elements, so every template is valid HTML.",
)

# Same page again: served from the DOM cache
empty_about_output = env.get_template("about.html").render(
    nav_items=nav_items,
    title="About Us",
    description=None,
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)
    print()
    print("DOM cache:", dom_cache.stats)


if __name__ == "__main__":
    main()

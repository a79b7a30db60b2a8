"""Recursive navigation -- one t-tree body renders a whole site map.

A site map of arbitrary depth is rendered by a single ``<li>`` body. Every
``<t-children />`` re-renders that body for the current item's children,
and the item markup lives in an included partial.

Run:
    python app.py
"""

from tmark import DictLoader, Environment

templates = {
    "sitemap.html": """\
<nav class="sitemap">
<ul>
<t-tree on="pages as page">
  <li><t-include file="partials/entry.html"></t-include>
    <t-if on="page.children"><ul><t-children /></ul></t-if>
  </li>
</t-tree>
</ul>
</nav>
""",
    "partials/entry.html": """\
<a href="{{ page.url }}" class="{{ 'current' if page.url == current else 'link' }}">\
{{ page.title }}</a>""",
}

site = [
    {"title": "Home", "url": "/"},
    {
        "title": "Docs",
        "url": "/docs/",
        "children": [
            {"title": "Install", "url": "/docs/install/"},
            {
                "title": "Directives",
                "url": "/docs/directives/",
                "children": [
                    {"title": "t-tree", "url": "/docs/directives/tree/"},
                ],
            },
        ],
    },
    {"title": "Blog", "url": "/blog/"},
]

env = Environment(loader=DictLoader(templates), markers=False)
template = env.get_template("sitemap.html")

output = template.render(pages=site, current="/docs/directives/tree/")


def main() -> None:
    print(output)


if __name__ == "__main__":
    main()

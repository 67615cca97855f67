"""
visualize.py - Generate an interactive D3.js treemap of HED tag counts.

Usage:
    hed-treemap --tree <hedcount.json> [--output <dir>] [--title <text>] [--open]

Features:
- Zoomable treemap: click a tag to zoom into its children, click the
  breadcrumb to zoom back out
- Rectangle area follows each node's size (raw or log counts)
- Tooltip with the full tag path and its instance count
"""

import argparse
import html
import json
import sys
import webbrowser
from pathlib import Path

DEFAULT_TITLE = "HED Tag Counts"


def load_json(path: str) -> dict:
    """Load JSON from file."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def extract_tree(data: dict) -> dict:
    """Accept either a bare hierarchy or hed-tree output with a `tree` field."""
    if "tree" in data and isinstance(data["tree"], dict):
        return data["tree"]
    if "name" in data:
        return data
    raise ValueError("Input has neither a 'tree' field nor a root 'name'")


def generate_html(tree_data: dict, title: str = DEFAULT_TITLE) -> str:
    """Generate self-contained HTML with an embedded D3.js treemap."""
    # Free-text tags must not close the script block
    tree_json = json.dumps(extract_tree(tree_data)).replace("</", "<\\/")
    page_title = html.escape(title)

    return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{page_title}</title>
    <script src="https://d3js.org/d3.v7.min.js"></script>
    <style>
        :root {{
            --bg-primary: #0d1117;
            --bg-secondary: #161b22;
            --text-primary: #f0f6fc;
            --text-secondary: #8b949e;
            --accent: #58a6ff;
            --border: #30363d;
        }}

        * {{
            box-sizing: border-box;
            margin: 0;
            padding: 0;
        }}

        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Noto Sans', Helvetica, Arial, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            line-height: 1.5;
            overflow: hidden;
        }}

        header {{
            padding: 12px 20px;
            background: var(--bg-secondary);
            border-bottom: 1px solid var(--border);
        }}

        header h1 {{
            font-size: 16px;
            font-weight: 600;
        }}

        #breadcrumb {{
            font-size: 13px;
            color: var(--accent);
            cursor: pointer;
        }}

        #treemap {{
            width: 100vw;
            height: calc(100vh - 70px);
        }}

        .node rect {{
            stroke: var(--bg-primary);
            stroke-width: 1px;
        }}

        .node text {{
            font-size: 11px;
            fill: var(--text-primary);
            pointer-events: none;
        }}

        .tooltip {{
            position: absolute;
            padding: 6px 10px;
            font-size: 12px;
            background: var(--bg-secondary);
            border: 1px solid var(--border);
            border-radius: 4px;
            color: var(--text-secondary);
            pointer-events: none;
            opacity: 0;
        }}
    </style>
</head>
<body>
    <header>
        <h1>{page_title}</h1>
        <div id="breadcrumb"></div>
    </header>
    <svg id="treemap"></svg>
    <div class="tooltip" id="tooltip"></div>

    <script>
        const TREE_DATA = {tree_json};

        const svg = d3.select('#treemap');
        const tooltip = d3.select('#tooltip');
        const color = d3.scaleOrdinal(d3.schemeTableau10);

        // Leaves carry their own size; internal nodes are drawn from their children
        const root = d3.hierarchy(TREE_DATA)
            .sum(d => d.children ? 0 : Math.max(d.size || 0, 0))
            .sort((a, b) => b.value - a.value);

        function topLevelName(d) {{
            while (d.depth > 1) d = d.parent;
            return d.data.name;
        }}

        function render(focus) {{
            const width = svg.node().clientWidth;
            const height = svg.node().clientHeight;

            const layoutRoot = focus.copy()
                .sum(d => d.children ? 0 : Math.max(d.size || 0, 0));
            d3.treemap()
                .size([width, height])
                .paddingTop(18)
                .paddingInner(2)
                .round(true)(layoutRoot);

            svg.selectAll('*').remove();

            const nodes = svg.selectAll('g')
                .data(layoutRoot.descendants().filter(d => d.depth <= 2))
                .join('g')
                .attr('class', 'node')
                .attr('transform', d => `translate(${{d.x0}},${{d.y0}})`);

            nodes.append('rect')
                .attr('width', d => Math.max(0, d.x1 - d.x0))
                .attr('height', d => Math.max(0, d.y1 - d.y0))
                .attr('fill', d => d.depth === 0 ? 'transparent' : color(topLevelName(d)))
                .attr('fill-opacity', d => d.depth === 1 ? 0.55 : 0.9)
                .style('cursor', d => d.children ? 'pointer' : 'default')
                .on('click', (event, d) => {{
                    if (d.depth === 1 && d.children) {{
                        const target = findNode(focus, d.data.name);
                        if (target) render(target);
                    }}
                }})
                .on('mousemove', (event, d) => {{
                    tooltip
                        .style('opacity', 1)
                        .style('left', `${{event.pageX + 12}}px`)
                        .style('top', `${{event.pageY + 12}}px`)
                        .text(d.data.name);
                }})
                .on('mouseout', () => tooltip.style('opacity', 0));

            nodes.append('text')
                .attr('x', 4)
                .attr('y', 13)
                .text(d => (d.x1 - d.x0) > 60 ? d.data.name : '');

            renderBreadcrumb(focus);
        }}

        function findNode(parent, name) {{
            return (parent.children || []).find(c => c.data.name === name);
        }}

        function renderBreadcrumb(focus) {{
            const crumbs = focus.ancestors().reverse();
            const breadcrumb = d3.select('#breadcrumb');
            breadcrumb.selectAll('*').remove();
            crumbs.forEach((node, i) => {{
                breadcrumb.append('span')
                    .text((i > 0 ? ' / ' : '') + node.data.name)
                    .on('click', () => render(node));
            }});
        }}

        render(root);

        window.addEventListener('resize', () => render(root));
    </script>
</body>
</html>'''


def main():
    parser = argparse.ArgumentParser(
        description="Generate interactive D3.js treemap of HED tag counts"
    )
    parser.add_argument(
        "--tree", "-t",
        type=str,
        required=True,
        help="Input hierarchy JSON file from hed-tree",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default="./hed-treemap",
        help="Output directory (default: ./hed-treemap)",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=DEFAULT_TITLE,
        help=f"Page title (default: {DEFAULT_TITLE})",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open visualization in browser",
    )

    args = parser.parse_args()

    try:
        tree_data = load_json(args.tree)
        page = generate_html(tree_data, args.title)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_file = output_dir / "index.html"
    output_file.write_text(page, encoding="utf-8")

    print(f"Visualization written to {output_file}", file=sys.stderr)

    if args.open:
        try:
            webbrowser.open(f"file://{output_file.resolve()}")
        except Exception as e:
            print(f"Could not open browser: {e}", file=sys.stderr)
            print(f"Please open manually: {output_file}", file=sys.stderr)


if __name__ == "__main__":
    main()

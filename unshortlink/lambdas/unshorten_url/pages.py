"""HTML pages served by the unshorten_url lambda

Templates live in `unshortlink/templates/` and are rendered with Jinja2
(autoescaping on: every URL shown here comes from an untrusted source).
"""

from jinja2 import Environment, PackageLoader, select_autoescape

from unshortlink.models import ResolvedLink


_env = Environment(
    loader=PackageLoader('unshortlink', 'templates'),
    autoescape=select_autoescape(['html']),
)


def render(template_name: str, **context) -> str:
    return _env.get_template(template_name).render(**context)


def index_page(server_url: str, link_count: int) -> str:
    return render('index.html', server_url=server_url, link_count=link_count)


def show_page(server_url: str, link: ResolvedLink) -> str:
    feedback_body = f'\n\n\n-----\nShort Url: {link.short_url}\nLong Url: {link.long_url}'
    return render(
        'show.html',
        server_url=server_url,
        short_url=str(link.short_url),
        long_url=str(link.long_url),
        linkable=link.long_url.requestable,
        feedback_body=feedback_body,
    )


def blacklist_page(server_url: str, link: ResolvedLink) -> str:
    return render('blacklist.html', server_url=server_url, short_url=str(link.short_url), long_url=str(link.long_url))


def error_page(server_url: str, error: str) -> str:
    return render('error.html', server_url=server_url, error=error)

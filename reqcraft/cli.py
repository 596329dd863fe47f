"""reqcraft CLI - HTTP client with per-project request templates."""

import json
import logging
import sys

import click

from reqcraft import __version__, executor
from reqcraft import config as cfg
from reqcraft.errors import EditAbortedError, ReqcraftError
from reqcraft.output import format_output, format_request
from reqcraft.prompts import CREATE_NEW, Editor, Selector
from reqcraft.workspace import Workspace

TOOL_HELP = """\
reqcraft - HTTP client with per-project request templates.

\b
DIRECT MODE
───────────
  reqcraft get http://localhost:3000/api/users
  reqcraft post http://localhost:3000/api/users --json '{"name":"test"}'
  reqcraft delete http://localhost:3000/api/users/123 --bearer $TOKEN

  If the config has a base_url, relative paths work:
    reqcraft get /api/users

\b
TEMPLATES
─────────
  Templates are JSON request documents grouped into projects:

  \b
  reqcraft project create shop
  reqcraft template create shop checkout     # opens $EDITOR
  reqcraft template list shop
  reqcraft run -p shop -t checkout

  A template document looks like:

  \b
  {
    "url": "https://api.example.com/orders/{{order_id}}",
    "method": "POST",
    "headers": {"X-Request-Id": "{{gen:uuid}}"},
    "body": {"id": "{{order_id}}", "at": "{{gen:timestamp}}"}
  }

\b
PLACEHOLDERS
────────────
  \b
  {{name}}            Value from the selected project variable
  {{gen:uuid}}        Random UUID v4
  {{gen:timestamp}}   Unix timestamp (seconds)

  Saving a template adds every new {{name}} to the project's variables
  with an empty value. Edit values with:
    reqcraft template edit shop --variables
    reqcraft template edit shop --variables -s order_id=42

\b
CONFIG FILE FORMAT (.reqcraft.yaml)
───────────────────────────────────
  Config resolution order:
    1. -c/--config flag (explicit path)
    2. .reqcraft.yaml / .reqcraft.yml / reqcraft.yaml / reqcraft.yml in CWD
    3. ~/.config/reqcraft/config.yaml (global)

  \b
  defaults:
    templates_dir: templates        # root for projects
    editor: vim                     # otherwise $EDITOR / $VISUAL
    base_url: ${API_BASE_URL}
    env_file: .env
    timeout: 30
    headers:
      Accept: application/json

  Templates root resolution: --root, $REQCRAFT_ROOT, templates_dir from
  config, ~/.config/reqcraft/templates/.
"""


class _App:
    """Per-invocation state shared by all commands."""

    def __init__(self, config: dict, env: dict[str, str], root, editor, selector):
        self.config = config
        self.env = env
        self.root = root
        self.editor = editor
        self.selector = selector
        self._workspace: Workspace | None = None

    @property
    def defaults(self) -> dict:
        return self.config.get("defaults", {})

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            self._workspace = Workspace.open(self.root, self.editor)
        return self._workspace


class _ReqcraftGroup(click.Group):
    """Renders core errors as one-line messages with exit code 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except EditAbortedError as e:
            click.echo(f"ABORTED: {e}", err=True)
            sys.exit(1)
        except ReqcraftError as e:
            click.echo(f"ERROR: {e}", err=True)
            sys.exit(1)


def header_options(f):
    f = click.option(
        "-v",
        "--verbose",
        is_flag=True,
        default=False,
        help="Show the request line and request/response headers.",
    )(f)
    f = click.option("--basic", default=None, metavar="USER:PASS", help="Basic auth credentials.")(f)
    f = click.option("--bearer", default=None, metavar="TOKEN", help="Bearer token.")(f)
    f = click.option(
        "-T",
        "--timeout",
        type=int,
        default=None,
        help="Request timeout in seconds. Default: 30.",
    )(f)
    f = click.option(
        "-H",
        "--header",
        multiple=True,
        help="HTTP header as 'Name: Value'. Repeatable.",
    )(f)
    return f


def body_options(f):
    f = click.option(
        "--data",
        "data_body",
        default=None,
        help="Raw body, sent as application/x-www-form-urlencoded.",
    )(f)
    f = click.option(
        "--json",
        "json_body",
        default=None,
        help="JSON body, sent as application/json.",
    )(f)
    return f


@click.group(
    cls=_ReqcraftGroup,
    help=TOOL_HELP,
    context_settings={"max_content_width": 88},
)
@click.option(
    "--root",
    "root_dir",
    default=None,
    help="Templates root directory. Default: resolved from $REQCRAFT_ROOT, "
    "config or ~/.config/reqcraft/templates/.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    default=None,
    help="Config file path. Default: .reqcraft.yaml in CWD, then ~/.config/reqcraft/config.yaml.",
)
@click.option("--debug", is_flag=True, default=False, help="Log storage operations to stderr.")
@click.version_option(__version__, prog_name="reqcraft")
@click.pass_context
def main(ctx, root_dir, config_file, debug):
    _setup_logging(debug)
    config = cfg.load_config(cfg.resolve_config_path(config_file))
    defaults = config.get("defaults", {})
    env = cfg.load_env(defaults.get("env_file"), config.get("_config_dir"))
    root = cfg.resolve_root(root_dir, config, env)
    ctx.obj = _App(config, env, root, Editor(defaults.get("editor")), Selector())


# ── Direct mode ──────────────────────────────────────────────────────────


@main.command("get", help="Execute a GET request.")
@click.argument("url")
@header_options
@click.pass_obj
def get_cmd(app, url, header, timeout, bearer, basic, verbose):
    _cmd_direct(app, "GET", url, None, None, header, timeout, bearer, basic, verbose)


@main.command("delete", help="Execute a DELETE request.")
@click.argument("url")
@header_options
@click.pass_obj
def delete_cmd(app, url, header, timeout, bearer, basic, verbose):
    _cmd_direct(app, "DELETE", url, None, None, header, timeout, bearer, basic, verbose)


@main.command("post", help="Execute a POST request.")
@click.argument("url")
@header_options
@body_options
@click.pass_obj
def post_cmd(app, url, header, timeout, bearer, basic, verbose, json_body, data_body):
    _cmd_direct(app, "POST", url, json_body, data_body, header, timeout, bearer, basic, verbose)


@main.command("put", help="Execute a PUT request.")
@click.argument("url")
@header_options
@body_options
@click.pass_obj
def put_cmd(app, url, header, timeout, bearer, basic, verbose, json_body, data_body):
    _cmd_direct(app, "PUT", url, json_body, data_body, header, timeout, bearer, basic, verbose)


@main.command("patch", help="Execute a PATCH request.")
@click.argument("url")
@header_options
@body_options
@click.pass_obj
def patch_cmd(app, url, header, timeout, bearer, basic, verbose, json_body, data_body):
    _cmd_direct(app, "PATCH", url, json_body, data_body, header, timeout, bearer, basic, verbose)


def _cmd_direct(app, method, url, json_body, data_body, header, timeout, bearer, basic, verbose):
    if json_body is not None and data_body is not None:
        _fail("Request body can be either --json or --data, not both.")

    base_url = cfg.resolve_value(app.defaults.get("base_url"), app.env) or ""
    if not url.startswith(("http://", "https://")):
        url = base_url + url

    headers = cfg.default_headers(app.config, app.env)
    body = None
    if json_body is not None:
        body = json_body
        headers["Content-Type"] = executor.JSON_CONTENT_TYPE
    elif data_body is not None:
        body = data_body
        headers["Content-Type"] = executor.FORM_CONTENT_TYPE
    headers.update(_request_headers(header, bearer, basic))

    _dispatch(app, method, url, headers, body, timeout, verbose)


# ── Template mode ────────────────────────────────────────────────────────


@main.command("run", help="Run a request from a template.")
@click.option("-p", "--project", "project_name", default=None, help="Project name.")
@click.option("-t", "--template", "template_name", default=None, help="Template name.")
@click.option(
    "--variable",
    "variable_name",
    default=None,
    help="Variable to fill placeholders from. Prompted for when the project has several.",
)
@click.option(
    "--no-review",
    is_flag=True,
    default=False,
    help="Send without opening the resolved request in the editor first.",
)
@header_options
@click.pass_obj
def run_cmd(
    app,
    project_name,
    template_name,
    variable_name,
    no_review,
    header,
    timeout,
    bearer,
    basic,
    verbose,
):
    ws = app.workspace
    project = _select_project(app, project_name)
    template = _select_template(app, project, template_name)
    if variable_name or ws.projects.variables(project):
        _select_variable(app, project, variable_name)

    request = ws.templates.request_with_variables(template, review=not no_review)

    headers = cfg.default_headers(app.config, app.env)
    body = None
    if request.method.has_body and request.body is not None:
        body = executor.encode_body(request.body)
        if not isinstance(request.body, str):
            headers["Content-Type"] = executor.JSON_CONTENT_TYPE
    headers.update(request.headers)
    headers.update(_request_headers(header, bearer, basic))

    result = _dispatch(app, request.method.value, request.url, headers, body, timeout, verbose)

    added = ws.projects.update_variables_from_response(project, result.raw_text)
    if added:
        click.echo(f"Registered variables from response: {', '.join(added)}", err=True)


@main.group("project", cls=_ReqcraftGroup)
def project_group():
    """Manage template projects."""


@project_group.command("create")
@click.argument("name")
@click.pass_obj
def project_create(app, name):
    project = app.workspace.projects.create(name)
    click.echo(f"Project {project.name} created")


@main.group("template", cls=_ReqcraftGroup)
def template_group():
    """Manage request templates, projects and variables."""


@template_group.command("create", help="Create a request template.")
@click.argument("project_name", required=False)
@click.argument("template_name", required=False)
@click.pass_obj
def template_create(app, project_name, template_name):
    project = _select_project(app, project_name, allow_create=True)
    name = template_name or app.selector.free_text("Template name")
    try:
        template = app.workspace.templates.create(project, name)
    except EditAbortedError:
        click.echo(
            f"ABORTED: template {name} kept with the default request. "
            f"Edit it with: reqcraft template edit {project.name} {name}",
            err=True,
        )
        sys.exit(1)
    click.echo(f"Template {template.name} for project {project.name} saved successfully")


@template_group.command("edit", help="Edit a request template or the project variables.")
@click.argument("project_name", required=False)
@click.argument("template_name", required=False)
@click.option("--variables", "edit_variables", is_flag=True, default=False, help="Edit the project variables.")
@click.option("--variable", "variable_name", default=None, help="Variable to edit with --variables.")
@click.option(
    "-s",
    "--set",
    "set_values",
    multiple=True,
    metavar="KEY=VALUE",
    help="With --variables: set one value instead of opening the editor. "
    "VALUE is parsed as JSON when possible (42, true), otherwise kept as text. Repeatable.",
)
@click.pass_obj
def template_edit(app, project_name, template_name, edit_variables, variable_name, set_values):
    ws = app.workspace
    project = _select_project(app, project_name)

    if edit_variables:
        assignments = _parse_assignments(set_values)
        variable = _select_variable(app, project, variable_name, allow_create=True)
        if assignments:
            for key, value in assignments:
                ws.variables.set_value(variable, key, value)
        else:
            ws.variables.edit(variable)
        click.echo(f"Variables {variable.name} edited successfully for project {project.name}")
        return

    template = _select_template(app, project, template_name)
    ws.templates.edit(template)
    ws.templates.save(template)
    click.echo(f"Template {template.name} from project {project.name} saved successfully")


@template_group.command("list", help="List projects, or the templates/variables of a project.")
@click.argument("project_name", required=False)
@click.option("--variables", "list_variables", is_flag=True, default=False, help="List variables.")
@click.pass_obj
def template_list(app, project_name, list_variables):
    ws = app.workspace
    if not project_name:
        click.echo("Projects:\n")
        for project in ws.projects.list():
            click.echo(project.name)
        return

    project = ws.projects.get(project_name)
    if list_variables:
        click.echo("Variables:\n")
        for variable in ws.projects.variables(project):
            click.echo(variable.name)
        return

    click.echo("Templates:\n")
    for name in ws.templates.list(project):
        click.echo(name)


@template_group.command("rename", help="Rename a request template or a project.")
@click.argument("project_name", required=False)
@click.argument("template_name", required=False)
@click.option("--project", "rename_project", is_flag=True, default=False, help="Rename the project.")
@click.option("--to", "new_name", default=None, help="New name. Prompted for when omitted.")
@click.pass_obj
def template_rename(app, project_name, template_name, rename_project, new_name):
    ws = app.workspace
    project = _select_project(app, project_name)
    old_project_name = project.name

    if rename_project:
        new_name = new_name or app.selector.free_text("New project name")
        ws.projects.rename(project, new_name)
        click.echo(f"Project renamed from {old_project_name} to {project.name}")
        return

    template = _select_template(app, project, template_name)
    old_template_name = template.name
    new_name = new_name or app.selector.free_text("New template name")
    ws.templates.rename(template, new_name)
    click.echo(f"Template renamed from {old_template_name} to {template.name}")


@template_group.command("relocate", help="Move a request template to another project.")
@click.argument("current_project")
@click.argument("new_project")
@click.argument("template_name")
@click.argument("new_template", required=False)
@click.pass_obj
def template_relocate(app, current_project, new_project, template_name, new_template):
    ws = app.workspace
    project = ws.projects.get(current_project)
    template = ws.templates.load(project, template_name)
    target = ws.projects.get(new_project)
    ws.templates.relocate(template, target, new_template)
    click.echo(
        f"Template moved from {current_project}/{template_name} "
        f"to {template.project.name}/{template.name}"
    )


@template_group.command("delete", help="Delete a request template or a whole project.")
@click.argument("project_name", required=False)
@click.argument("template_name", required=False)
@click.option("--project", "delete_project", is_flag=True, default=False, help="Delete an entire project.")
@click.option("-y", "--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.pass_obj
def template_delete(app, project_name, template_name, delete_project, yes):
    ws = app.workspace
    project = _select_project(app, project_name)

    if delete_project:
        prompt = f"The entire project [{project.name}] will be deleted, do you wish to proceed?"
        if not yes and not app.selector.confirm(prompt):
            click.echo("Nothing deleted")
            return
        name = project.name
        ws.projects.delete(project)
        click.echo(f"Project {name} deleted successfully")
        return

    template = _select_template(app, project, template_name)
    name = template.name
    ws.templates.delete(template)
    click.echo(f"Template {name} deleted successfully")


# ── Helpers ──────────────────────────────────────────────────────────────


def _setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str):
    click.echo(f"ERROR: {message}", err=True)
    sys.exit(1)


def _request_headers(header_specs, bearer=None, basic=None) -> dict[str, str]:
    """-H 'Name: Value' pairs plus auth headers."""
    headers = {}
    try:
        for spec in header_specs:
            name, value = executor.parse_header(spec)
            headers[name] = value
        headers.update(executor.build_auth_headers(bearer, basic))
    except ValueError as e:
        _fail(str(e))
    return headers


def _dispatch(app, method, url, headers, body, timeout, verbose):
    if verbose:
        click.echo(format_request(method, url, headers))
    result = executor.execute_request(
        method=method,
        url=url,
        headers=headers,
        body=body,
        timeout=cfg.resolve_timeout(timeout, app.defaults.get("timeout")),
    )
    if result.error:
        _fail(result.error)
    click.echo(format_output(result, verbose=verbose))
    return result


def _parse_assignments(specs) -> list[tuple[str, object]]:
    """Parse KEY=VALUE specs; VALUE is JSON-decoded when it parses."""
    pairs = []
    for spec in specs:
        if "=" not in spec:
            _fail(f"Invalid assignment {spec!r}, format must be KEY=VALUE")
        key, raw = spec.split("=", 1)
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        pairs.append((key.strip(), value))
    return pairs


def _select_project(app, name=None, allow_create=False):
    projects = app.workspace.projects
    if name:
        if allow_create and not projects.exists(name):
            if app.selector.confirm(f"Project {name} does not exist. Create it?"):
                return projects.create(name)
        return projects.get(name)

    available = projects.list()
    if not available and not allow_create:
        _fail(f"No projects in {app.root}. Create one with: reqcraft project create NAME")
    choice = app.selector.choose_one("Project", [p.name for p in available], allow_create)
    if choice == CREATE_NEW:
        return projects.create(app.selector.free_text("New project name"))
    return available[choice]


def _select_template(app, project, name=None):
    templates = app.workspace.templates
    if name:
        return templates.load(project, name)
    names = templates.list(project)
    if not names:
        _fail(f"No templates in project {project.name}")
    return templates.load(project, names[app.selector.choose_one("Template", names)])


def _select_variable(app, project, name=None, allow_create=False):
    projects = app.workspace.projects
    variables = projects.variables(project)
    names = [v.name for v in variables]
    if name:
        if allow_create and name not in names:
            return projects.create_variable(project, name)
        return projects.select_variable(project, name)
    if len(variables) == 1 and not allow_create:
        return projects.select_variable(project, 0)
    if not variables and not allow_create:
        _fail(f"No variables in project {project.name}")
    choice = app.selector.choose_one("Variable", names, allow_create)
    if choice == CREATE_NEW:
        return projects.create_variable(project, app.selector.free_text("New variable name"))
    return projects.select_variable(project, choice)

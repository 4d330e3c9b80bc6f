"""stackgen scaffolder -- writes the generated project's files.

Copies the bundled Next.js + Prisma app tree and renders the option-dependent
files (``.env.local``, ``docker-compose.yml``).

Quick usage::

    from stackgen.config import ScaffoldOptions
    from stackgen.scaffolder import ProjectGenerator

    options = ScaffoldOptions(output_dir="./demo", app_name="demo-app")
    generator = ProjectGenerator(options)
    await generator.copy_template(options.app_path)
    await generator.write_env(options.app_path)
"""

from stackgen.scaffolder.docker_gen import DockerGenerator
from stackgen.scaffolder.env_gen import EnvGenerator, build_database_url
from stackgen.scaffolder.generator import ProjectGenerator
from stackgen.scaffolder.manifest import update_manifest
from stackgen.scaffolder.templates import TemplateRenderer

__all__ = [
    "DockerGenerator",
    "EnvGenerator",
    "ProjectGenerator",
    "TemplateRenderer",
    "build_database_url",
    "update_manifest",
]

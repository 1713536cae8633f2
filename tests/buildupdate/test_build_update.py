"""
Tests for a complete regeneration run against a fake TeamCity.
"""

import os

import pytest

from buildupdate import BuildUpdater, ScriptDocument, resolve_script_config
from buildupdate.artifact_dependency_models import ArtifactDependency, Build, BuildDependency
from buildupdate.buildupdate_config import Platform
from buildupdate.buildupdate_exceptions import ConfigurationError
from buildupdate.script_backends import BashScriptBackend

REPOSITORY = "http://build.example.org/guestAuth/repository/download"


def make_config(**cli):
    return resolve_script_config({}, cli, Platform.LINUX)


class TestResolveBuildType:
    """Test selection of the build type."""

    def test_build_type_given(self, teamcity, logger):
        """An explicit build type needs no lookup."""
        updater = BuildUpdater(make_config(build_type="bt9"), teamcity, logger)

        assert updater.resolve_build_type() == "bt9"

    def test_by_project_and_build_name(self, teamcity, logger):
        updater = BuildUpdater(make_config(project="Application", build="Release"), teamcity, logger)

        assert updater.resolve_build_type() == "bt3"

    def test_missing_project_lists_names(self, teamcity, logger):
        updater = BuildUpdater(make_config(), teamcity, logger)

        with pytest.raises(ConfigurationError) as excinfo:
            updater.resolve_build_type()
        assert "You need to specify project!" in excinfo.value.message
        assert "Application" in excinfo.value.message
        assert "Library" in excinfo.value.message

    def test_unknown_project(self, teamcity, logger):
        updater = BuildUpdater(make_config(project="Nope", build="Nightly"), teamcity, logger)

        with pytest.raises(ConfigurationError) as excinfo:
            updater.resolve_build_type()
        assert "Project 'Nope' not Found!" in excinfo.value.message

    def test_missing_build_lists_names(self, teamcity, logger):
        updater = BuildUpdater(make_config(project="Application"), teamcity, logger)

        with pytest.raises(ConfigurationError) as excinfo:
            updater.resolve_build_type()
        assert "You need to specify build!" in excinfo.value.message
        assert "Nightly" in excinfo.value.message

    def test_unknown_build(self, teamcity, logger):
        updater = BuildUpdater(make_config(project="Application", build="Weekly"), teamcity, logger)

        with pytest.raises(ConfigurationError) as excinfo:
            updater.resolve_build_type()
        assert "Build 'Weekly' not Found!" in excinfo.value.message


class TestTaggedBuild:
    """Test pinning dependencies to the builds used by a tagged build."""

    def test_dependencies_are_pinned(self, teamcity, logger):
        teamcity.tagged_builds[("bt1", "release-1.0")] = Build(
            build_id="120", dependencies=[BuildDependency(build_id="97", build_type="bt2")]
        )
        updater = BuildUpdater(make_config(build_type="bt1", build_tag="release-1.0"), teamcity, logger)

        (dependency,) = updater.fetch_dependencies("bt1")
        assert dependency.revision_value == "97.tcbuildid"

    def test_unmatched_dependency_keeps_revision(self, teamcity, logger):
        teamcity.tagged_builds[("bt1", "release-1.0")] = Build(build_id="120")
        updater = BuildUpdater(make_config(build_type="bt1", build_tag="release-1.0"), teamcity, logger)

        (dependency,) = updater.fetch_dependencies("bt1")
        assert dependency.revision_value == "latest.lastSuccessful"

    def test_unknown_tag(self, teamcity, logger):
        updater = BuildUpdater(make_config(build_type="bt1", build_tag="nope"), teamcity, logger)

        with pytest.raises(ConfigurationError):
            updater.fetch_dependencies("bt1")


class TestUpdate:
    """Test a full update of the script file."""

    @pytest.fixture
    def document(self, tmp_path, logger):
        return ScriptDocument(str(tmp_path / "buildupdate.sh"), BashScriptBackend(), logger)

    def test_update_writes_script(self, teamcity, logger, document):
        config = make_config(project="Application", build="Nightly", root_dir="deps")
        plan = BuildUpdater(config, teamcity, logger).update(document)

        with open(document.path) as f:
            lines = f.read().splitlines()

        assert lines[:5] == [
            "#!/bin/bash",
            "# server=build.palaso.org",
            "# project=Application",
            "# build=Nightly",
            "# root_dir=deps",
        ]
        assert "mkdir -p deps/bin" in lines
        assert f"copy_auto {REPOSITORY}/bt2/latest.lastSuccessful/lib/a.dll deps/bin/a.dll" in lines
        assert '[ "$clean" == "1" ] || unzip -uqo deps/Downloads/docs.zip -d deps/docs' in lines
        assert lines[-1] == "# End of script"
        assert len(plan.downloads) == 3

    def test_tagged_update_uses_pinned_urls(self, teamcity, logger, document):
        teamcity.tagged_builds[("bt1", "v2")] = Build(
            build_id="120", dependencies=[BuildDependency(build_id="97", build_type="bt2")]
        )
        teamcity.listings[("bt2", "97.tcbuildid")] = ["lib/a.dll"]
        BuildUpdater(make_config(build_type="bt1", build_tag="v2"), teamcity, logger).update(document)

        with open(document.path) as f:
            content = f.read()
        assert "# build_tag=v2" in content
        assert f"copy_auto {REPOSITORY}/bt2/97.tcbuildid/lib/a.dll ./bin/a.dll" in content

    def test_failure_leaves_existing_script(self, teamcity, logger, document):
        """An unsupported rule aborts before the file is touched."""
        with open(document.path, "w") as f:
            f.write("#!/bin/bash\n# build_type=bt1\n")
        teamcity.dependencies["bt1"] = [
            ArtifactDependency(source_build_type="bt2", path_rules={"lib/**/x.dll": "bin"})
        ]

        with pytest.raises(ConfigurationError):
            BuildUpdater(make_config(build_type="bt1"), teamcity, logger).update(document)

        with open(document.path) as f:
            assert f.read() == "#!/bin/bash\n# build_type=bt1\n"
        assert os.listdir(os.path.dirname(document.path)) == ["buildupdate.sh"]

    def test_no_dependencies(self, teamcity, logger, document):
        """A build type without dependencies still yields a runnable script."""
        plan = BuildUpdater(make_config(build_type="bt2"), teamcity, logger).update(document)

        assert plan.downloads == []
        assert os.path.exists(document.path)

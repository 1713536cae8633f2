"""
Tests for building and rendering transfer plans.
"""

import pytest

from buildupdate.artifact_dependency_models import ArtifactDependency, BuildType, ExclusionOp
from buildupdate.path_rule_resolver import Download, ExtractArchive, PathRuleResolver
from buildupdate.script_backends import BashScriptBackend, CmdScriptBackend
from buildupdate.transfer_plan import TransferPlan, TransferPlanBuilder

DOWNLOAD_URL = "http://build.example.org/guestAuth/repository/download/bt2/latest.lastSuccessful"


@pytest.fixture
def builder(teamcity, logger):
    resolver = PathRuleResolver(teamcity.repository_url, teamcity, logger)
    return TransferPlanBuilder(resolver, teamcity, teamcity, logger)


class TestTransferPlanBuilder:
    """Test aggregation of dependencies into one plan."""

    def test_operations_and_directories(self, builder, teamcity):
        """Downloads and extractions are split; directories are sorted and unique."""
        plan = builder.build("bt1", teamcity.dependencies["bt1"])

        assert plan.downloads == [
            Download(f"{DOWNLOAD_URL}/lib/a.dll", "bin/a.dll"),
            Download(f"{DOWNLOAD_URL}/lib/b.dll", "bin/b.dll"),
            Download(f"{DOWNLOAD_URL}/docs.zip", "Downloads/docs.zip"),
        ]
        assert plan.extractions == [ExtractArchive("Downloads/docs.zip", "docs")]
        assert plan.directories == ["Downloads", "bin", "docs"]
        assert plan.clean_directories == []

    def test_provenance_comments(self, builder, teamcity):
        """Comments describe the build, its VCS root and every dependency."""
        plan = builder.build("bt1", teamcity.dependencies["bt1"])

        assert plan.comments == [
            "*** Results ***",
            "build: Nightly (bt1)",
            "project: Application",
            "URL: http://build.example.org/viewType.html?buildTypeId=bt1",
            "VCS: https://github.com/example/app [develop]",
            "dependencies:",
            "[0] build: Library Build (bt2)",
            "    project: Library",
            "    URL: http://build.example.org/viewType.html?buildTypeId=bt2",
            "    clean: false",
            "    revision: latest.lastSuccessful",
            "    paths: lib/*.dll => bin, docs.zip!** => docs",
        ]

    def test_exclusions_are_documented(self, builder):
        dependency = ArtifactDependency(
            source_build_type="bt2",
            path_rules={"lib/*.dll": "bin"},
            exclusion_rules={"lib/b.dll": ExclusionOp.EXCLUDE},
        )
        plan = builder.build("bt1", [dependency])

        assert "    exclusions: -:lib/b.dll" in plan.comments
        assert [d.local_path for d in plan.downloads] == ["bin/a.dll"]

    def test_missing_vcs_root_is_tolerated(self, builder, teamcity):
        """A build type whose VCS root cannot be fetched gets no VCS line."""
        teamcity.build_types["bt1"] = teamcity.build_types["bt1"].model_copy(
            update={"vcs_root_id": "vcs404"}
        )
        plan = builder.build("bt1", [])

        assert not any(c.startswith("VCS:") for c in plan.comments)
        assert plan.comments[-1] == "dependencies:"

    def test_clean_directories(self, builder):
        """Clean dependencies list every declared destination, the root one included."""
        dependency = ArtifactDependency(
            source_build_type="bt2",
            clean_destination_directory=True,
            path_rules={"lib/a.dll": "lib\\net40", "lib/b.dll": ""},
        )
        plan = builder.build("bt1", [dependency])

        assert plan.clean_directories == ["lib/net40", ""]
        assert "    clean: true" in plan.comments

    def test_clean_root_destination_renders_root_dir(self, builder):
        """A rule without a destination cleans the root directory itself."""
        dependency = ArtifactDependency(
            source_build_type="bt2",
            clean_destination_directory=True,
            path_rules={"lib/a.dll": ""},
        )
        lines = builder.build("bt1", [dependency]).render(BashScriptBackend(), ".")

        assert lines[:2] == ["# clean destination directories", "rm -rf ."]

    def test_dependency_order_is_kept(self, builder, teamcity):
        """Downloads follow dependency declaration order."""
        teamcity.build_types["bt5"] = BuildType(id="bt5", name="Tools", projectName="Tools")
        dependencies = [
            ArtifactDependency(source_build_type="bt5", path_rules={"fmt.exe": "tools"}),
            ArtifactDependency(source_build_type="bt2", path_rules={"lib/a.dll": "bin"}),
        ]
        plan = builder.build("bt1", dependencies)

        assert [d.local_path for d in plan.downloads] == ["tools/fmt.exe", "bin/a.dll"]
        assert "[1] build: Library Build (bt2)" in plan.comments


class TestTransferPlanRender:
    """Test rendering of a plan into script statements."""

    @pytest.fixture
    def plan(self):
        return TransferPlan(
            clean_directories=["bin"],
            comments=["*** Results ***"],
            directories=["", "Downloads", "bin"],
            downloads=[
                Download(f"{DOWNLOAD_URL}/lib/a.dll", "bin/a.dll"),
                Download(f"{DOWNLOAD_URL}/docs.zip", "Downloads/docs.zip"),
            ],
            extractions=[ExtractArchive("Downloads/docs.zip", "")],
        )

    def test_render_bash(self, plan):
        """Sections come in order: clean, comments, mkdir, download, extract."""
        assert plan.render(BashScriptBackend(), ".") == [
            "# clean destination directories",
            "rm -rf ./bin",
            "",
            "# *** Results ***",
            "",
            "# make sure output directories exist",
            "mkdir -p .",
            "mkdir -p ./Downloads",
            "mkdir -p ./bin",
            "",
            "# download artifact dependencies",
            f"copy_auto {DOWNLOAD_URL}/lib/a.dll ./bin/a.dll",
            f"copy_auto {DOWNLOAD_URL}/docs.zip ./Downloads/docs.zip",
            "# extract downloaded zip files",
            '[ "$clean" == "1" ] || unzip -uqo ./Downloads/docs.zip -d .',
        ]

    def test_render_batch_with_root_dir(self, plan):
        """Local paths are placed below the configured root directory."""
        lines = plan.render(CmdScriptBackend(), "../deps")

        assert "if exist ..\\deps\\bin\\nul rmdir /s /q ..\\deps\\bin" in lines
        assert f"call :copy_auto {DOWNLOAD_URL}/lib/a.dll ..\\deps\\bin\\a.dll" in lines

    def test_render_without_extractions_or_cleaning(self):
        plan = TransferPlan(directories=["bin"])
        lines = plan.render(BashScriptBackend(), ".")

        assert lines[0] == ""
        assert "# extract downloaded zip files" not in lines
        assert "# clean destination directories" not in lines

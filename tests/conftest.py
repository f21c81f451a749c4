"""Shared fixtures for the stepdoc test-suite.

The documentation pipeline is exercised against in-memory HTML pages served by
``FakeClient``, a stand-in for :class:`stepdoc.http_client.HttpClient` that
records every requested URL. STEP fixtures are small but structurally real
(header section, ``FILE_SCHEMA`` declaration, data section).
"""

from __future__ import annotations

import typing as typ

import pytest

from stepdoc.http_client import Deadline, HttpResponse, NetworkError

IFC2X3_BASE = "http://www.buildingsmart-tech.org/ifc/IFC2x3/TC1/html"
IFC4X1_TOC = "http://www.buildingsmart-tech.org/ifc/IFC4x1/final/html/toc.htm"
IFC4X1_WALL = (
    "http://www.buildingsmart-tech.org/ifc/IFC4x1/final/html/"
    "schema/ifcsharedbldgelements/lexical/ifcwall.htm"
)


def step_text(schema: str = "IFC4X1") -> str:
    """Return a small STEP file declaring ``schema``."""
    return (
        "ISO-10303-21;\n"
        "HEADER;\n"
        "FILE_DESCRIPTION(('ViewDefinition [CoordinationView]'),'2;1');\n"
        "FILE_NAME('wall.ifc','2019-01-01T00:00:00',(''),(''),'','','');\n"
        f"FILE_SCHEMA(('{schema}'));\n"
        "ENDSEC;\n"
        "DATA;\n"
        "#1=IFCPERSON($,$,'',$,$,$,$,$);\n"
        "#10=IFCWALL('2O2Fr$t4X7Zf8NOew3FLOH',#1,'Wall',$,$,$,$,$,$);\n"
        "#12=IFCDOOR('1O2Fr$t4X7Zf8NOew3FLOH',#1,'Door',$,$,$,$,$,$,$,$);\n"
        "#20=IFCRELCONTAINEDINSPATIALSTRUCTURE('3x',#1,$,$,(#10,#12),#30);\n"
        "ENDSEC;\n"
        "END-ISO-10303-21;\n"
    )


INDEX_WITHOUT_WALL = """
<html><body>
<a href="ifcsharedbldgelements/lexical/ifcdoor.htm">IfcDoor</a>
<a href="ifcsharedbldgelements/lexical/ifcwallstandardcase.htm">IfcWallStandardCase</a>
</body></html>
"""

INDEX_WITH_WALL = """
<html><body>
<a name="top"></a>
<a href="ifcsharedbldgelements/lexical/ifcdoor.htm">IfcDoor</a>
<a href="ifcsharedbldgelements/lexical/ifcwall.htm">IfcWall</a>
<a href="ifcsharedbldgelements/lexical/ifcwallstandardcase.htm">IfcWallStandardCase</a>
</body></html>
"""

TOC_WITH_WALL = """
<html><body><ul>
<li><a href="schema/ifcsharedbldgelements/lexical/ifcdoor.htm">IfcDoor</a></li>
<li><a href="schema/ifcsharedbldgelements/lexical/ifcwall.htm">IfcWall</a></li>
</ul></body></html>
"""

WALL_PAGE = """
<html><body>
<h1>IfcWall</h1>
<h2>Attribute definitions</h2>
<table class="attributes">
<tr><th>#</th><th>Attribute</th><th>Type</th></tr>
<tr><td>9</td><td>PredefinedType</td><td>IfcWallTypeEnum</td></tr>
</table>
<details open="open">
<summary>Attribute inheritance</summary>
<table class="attributes">
<tr><th>#</th><th>Attribute</th><th>Type</th></tr>
<tr><td colspan="3">IfcRoot</td></tr>
<tr><td>1</td><td>GlobalId</td><td>IfcGloballyUniqueId</td></tr>
<tr><td>2</td><td>OwnerHistory</td><td>IfcOwnerHistory</td></tr>
<tr><td colspan="3">IfcObject</td></tr>
<tr><td></td><td>IsDeclaredBy</td><td>SET [0:1] OF IfcRelDefinesByObject</td></tr>
</table>
</details>
</body></html>
"""


class FakeClient:
    """In-memory HttpClient replacement keyed by URL.

    Values are page bodies, or exceptions to raise for that URL. Unknown URLs
    raise :class:`NetworkError` with a 404 status.
    """

    def __init__(self, pages: typ.Mapping[str, str | Exception]) -> None:
        self.pages = dict(pages)
        self.calls: list[str] = []
        self.deadlines: list[Deadline | None] = []

    def fetch_text(self, url: str, *, deadline: Deadline | None = None) -> HttpResponse:
        self.calls.append(url)
        self.deadlines.append(deadline)
        page = self.pages.get(url)
        if page is None:
            msg = f"Fetching '{url}' failed with status 404"
            raise NetworkError(msg, url=url, status=404)
        if isinstance(page, Exception):
            raise page
        return HttpResponse(status=200, body=page, url=url)


@pytest.fixture
def fake_client() -> typ.Callable[[typ.Mapping[str, str | Exception]], FakeClient]:
    """Return a factory building a FakeClient over the given pages."""
    return FakeClient

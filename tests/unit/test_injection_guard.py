import pytest

from querygate.common.errors import ErrorCode, InjectionDetected
from querygate.safety.injection import check, detect_injection


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT * FROM t WHERE id=1 UNION SELECT pass FROM admins",
        "SELECT * FROM t; DROP TABLE t",
        "ALTER TABLE users ADD COLUMN admin BOOLEAN",
        "CREATE DATABASE shadow",
        "SELECT 1; SELECT 2",
        "EXEC('xp_cmdshell dir')",
        "SELECT * FROM users -- trailing comment",
        "SELECT * FROM users /* hidden */",
        "SELECT * FROM users WHERE name = '' or 1=1",
        "SELECT * FROM users WHERE a = 1 ) or ( b = 2",
    ],
)
def test_rejects_known_attack_shapes(sql):
    with pytest.raises(InjectionDetected) as exc_info:
        check(sql)

    assert exc_info.value.error_code == ErrorCode.INJECTION_DETECTED
    assert exc_info.value.reason


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT id, name FROM products WHERE category = 'electronics' LIMIT 10",
        "SELECT COUNT(*) FROM orders",
        "SELECT * FROM users;",
        "UPDATE users SET name = 'x' WHERE id = 3",
        'db.users.find({"age": {"$gt": 18}}, { name: 1, _id: 0 })',
    ],
)
def test_accepts_ordinary_queries(sql):
    check(sql)
    assert detect_injection(sql) is None


def test_rules_are_case_insensitive():
    assert detect_injection("select 1 UnIoN   SeLeCt password from admins") == "UNION SELECT injection attempt"


def test_first_matching_rule_wins():
    # Both the DROP TABLE rule and the multi-statement rule match.
    assert detect_injection("SELECT 1; DROP TABLE t") == "DROP TABLE statement"


def test_metacharacter_pass_runs_after_patterns():
    reason = detect_injection("SELECT * FROM users WHERE name = 'admin'--'")
    assert reason is not None
    assert "'--" in reason


def test_rejection_message_carries_reason():
    with pytest.raises(InjectionDetected) as exc_info:
        check("SELECT * FROM t; DROP TABLE t")

    response = exc_info.value.to_response()
    assert response.details == {"reason": "DROP TABLE statement"}
    assert "DROP TABLE statement" in response.message

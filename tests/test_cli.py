import json

from click.testing import CliRunner

from penny.cli import EXIT_INVALID, EXIT_NOT_FOUND, main as cli


def write_upload(path):
    path.write_text(
        "Vendor Name,Amount,Date,Notes\n"
        "Swiggy,100,2025-05-01,lunch\n"
        "Swiggy,100,2025-05-02,\n"
        "Swiggy,100,2025-05-03,\n"
        "Zomato,\"1,000.00\",2025-05-04,party\n"
        "Uber,-3,2025-05-05,\n"
        "Uber Eats,$20,06/05/2025,\n"
    )


def invoke(db_path, *args):
    return CliRunner().invoke(cli, ['--db', str(db_path), *args])


def test_import_and_dashboard(tmp_path):
    db = tmp_path / 'penny.db'
    upload = tmp_path / 'upload.csv'
    write_upload(upload)

    res = invoke(db, 'import', str(upload))
    assert res.exit_code == 0, res.output
    assert 'Added 5 expense(s), 1 failed.' in res.output
    assert 'Row 6: amount must be greater than 0' in res.output

    res = invoke(db, 'dashboard', '--json')
    assert res.exit_code == 0, res.output
    data = json.loads(res.output)
    assert data['anomaly_count'] == 1
    assert data['anomalies'][0]['vendor_name'] == 'Zomato'
    assert data['category_totals'][0] == {'category': 'Food', 'total': '1320.00', 'count': 5}
    assert data['monthly_by_category'] == {'2025-05': {'Food': '1320.00'}}

    res = invoke(db, 'dashboard')
    assert res.exit_code == 0, res.output
    assert 'Anomalies (1):' in res.output


def test_add_show_delete(tmp_path):
    db = tmp_path / 'penny.db'
    res = invoke(db, 'add', '--date', '2025-05-01', '--amount', '499', '--vendor', 'Netflix Premium')
    assert res.exit_code == 0, res.output
    assert 'Entertainment' in res.output

    res = invoke(db, 'show', '1')
    assert res.exit_code == 0, res.output
    shown = json.loads(res.output)
    assert shown['amount'] == '499.00'
    assert shown['category'] == 'Entertainment'

    res = invoke(db, 'delete', '1')
    assert res.exit_code == 0, res.output

    res = invoke(db, 'show', '1')
    assert res.exit_code == EXIT_NOT_FOUND
    res = invoke(db, 'delete', '1')
    assert res.exit_code == EXIT_NOT_FOUND


def test_add_rejects_non_positive_amount(tmp_path):
    res = invoke(tmp_path / 'penny.db', 'add', '--amount', '0', '--vendor', 'Uber')
    assert res.exit_code == 2
    assert 'amount must be greater than 0' in res.output


def test_add_rejects_sub_cent_amount(tmp_path):
    db = tmp_path / 'penny.db'
    res = invoke(db, 'add', '--amount', '0.004', '--vendor', 'Uber')
    assert res.exit_code == EXIT_INVALID
    assert 'amount must be greater than 0' in res.output
    assert invoke(db, 'list').output == ''


def test_check_rejects_unusable_amounts(tmp_path):
    db = tmp_path / 'penny.db'
    assert invoke(db, 'add', '--amount', '10', '--vendor', 'Uber').exit_code == 0
    for bad in ('NaN', 'Infinity', '0'):
        res = invoke(db, 'check', 'Uber', bad)
        assert res.exit_code == 2, res.output
        assert 'Invalid value' in res.output


def test_import_empty_file_fails(tmp_path):
    empty = tmp_path / 'empty.csv'
    empty.write_text('')
    res = invoke(tmp_path / 'penny.db', 'import', str(empty))
    assert res.exit_code == EXIT_INVALID
    assert 'file is empty or has no headers' in res.output


def test_import_unsupported_extension(tmp_path):
    doc = tmp_path / 'statement.pdf'
    doc.write_text('x')
    res = invoke(tmp_path / 'penny.db', 'import', str(doc))
    assert res.exit_code == EXIT_INVALID
    assert 'No parser registered' in res.output


def test_import_manual_yaml(tmp_path):
    manual = tmp_path / 'manual.yaml'
    manual.write_text(
        """\
- date: 2025-05-04
  merchant: Airtel Postpaid
  amount: 599
"""
    )
    db = tmp_path / 'penny.db'
    res = invoke(db, 'import', '--manual', str(manual))
    assert res.exit_code == 0, res.output
    res = invoke(db, 'list', '--month', '2025-05')
    assert 'Utilities' in res.output
    assert 'Airtel Postpaid' in res.output


def test_rules_check_and_summary(tmp_path):
    db = tmp_path / 'penny.db'
    res = invoke(db, 'rules')
    assert res.exit_code == 0, res.output
    assert 'uber eats' in res.output

    res = invoke(db, 'check', 'Uber Eats', '5000')
    assert res.output.strip() == 'Food: normal'

    upload = tmp_path / 'upload.csv'
    write_upload(upload)
    invoke(db, 'import', str(upload))
    res = invoke(db, 'check', 'Swiggy', '5000')
    assert res.output.strip() == 'Food: anomalous'

    res = invoke(db, 'summary', '--limit', '1')
    assert res.exit_code == 0, res.output
    lines = [l for l in res.output.splitlines() if l.strip()]
    assert lines[0].startswith('2025-05  Food')
    assert lines[-1].startswith('Zomato')


def test_config_file_and_env(tmp_path, monkeypatch):
    cfg = tmp_path / 'config.yaml'
    cfg.write_text('anomaly_multiplier: 10\n')
    env = tmp_path / '.env'
    env.write_text(f'PENNY_DB_PATH={tmp_path / "env.db"}\n')
    monkeypatch.setenv('PENNY_DB_PATH', 'unused.db')
    monkeypatch.delenv('PENNY_DB_PATH')

    upload = tmp_path / 'upload.csv'
    write_upload(upload)
    res = CliRunner().invoke(cli, ['--config', str(cfg), '--env-file', str(env), 'import', str(upload)])
    assert res.exit_code == 0, res.output
    assert (tmp_path / 'env.db').exists()

    res = CliRunner().invoke(cli, ['--config', str(cfg), '--db', str(tmp_path / 'env.db'), 'dashboard', '--json'])
    assert json.loads(res.output)['anomaly_count'] == 0


def test_invalid_config_exits(tmp_path):
    cfg = tmp_path / 'config.yaml'
    cfg.write_text('anomaly_multiplier: 0\n')
    res = CliRunner().invoke(cli, ['--config', str(cfg), 'rules'])
    assert res.exit_code == EXIT_INVALID
    assert 'anomaly_multiplier' in res.output

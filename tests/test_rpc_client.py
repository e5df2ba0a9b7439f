# pylint: disable=protected-access
from unittest.mock import Mock

import pytest
import requests

from leader_inspector.rpc_client import RpcError, SolanaRpcClient, get_domain_name
from tests.conftest import json_response


@pytest.fixture
def rpc():
    client = SolanaRpcClient('https://rpc.example.com/some-key', timeout=5)
    client.session = Mock()
    return client


def rpc_result(result):
    return json_response({'jsonrpc': '2.0', 'id': 1, 'result': result})


def rpc_error(code, message):
    return json_response({'jsonrpc': '2.0', 'id': 1, 'error': {'code': code, 'message': message}})


@pytest.mark.unit
def test_get_domain_name():
    assert get_domain_name('https://rpc.example.com/some-key') == 'rpc.example.com'
    assert get_domain_name('http://localhost:8899') == 'localhost:8899'
    assert get_domain_name('') == 'unknown'


@pytest.mark.unit
def test_call_builds_json_rpc_payload(rpc):
    rpc.session.post.return_value = rpc_result({'epoch': 250})

    assert rpc.get_epoch_info() == {'epoch': 250}

    args, kwargs = rpc.session.post.call_args
    assert args == ('https://rpc.example.com/some-key',)
    assert kwargs['timeout'] == 5
    payload = kwargs['json']
    assert payload['jsonrpc'] == '2.0'
    assert payload['method'] == 'getEpochInfo'
    assert payload['params'] == [{'commitment': 'finalized'}]


@pytest.mark.unit
def test_request_ids_increase(rpc):
    rpc.session.post.return_value = rpc_result([])
    rpc.get_blocks(1, 4)
    rpc.get_blocks(5, 8)
    ids = [c.kwargs['json']['id'] for c in rpc.session.post.call_args_list]
    assert ids == [1, 2]


@pytest.mark.unit
def test_leader_schedule_may_be_null(rpc):
    rpc.session.post.return_value = rpc_result(None)
    assert rpc.get_leader_schedule(108_000_000) is None
    assert rpc.session.post.call_args.kwargs['json']['params'][0] == 108_000_000


@pytest.mark.unit
def test_transport_error_raises_rpc_error(rpc):
    rpc.session.post.side_effect = requests.ConnectionError('unreachable')
    with pytest.raises(RpcError, match='ConnectionError'):
        rpc.get_epoch_info()


@pytest.mark.unit
def test_http_error_raises_rpc_error(rpc):
    rpc.session.post.return_value = json_response({}, status_code=429)
    with pytest.raises(RpcError, match='HTTP 429'):
        rpc.get_epoch_schedule()


@pytest.mark.unit
def test_json_rpc_error_keeps_code(rpc):
    rpc.session.post.return_value = rpc_error(-32602, 'Invalid params')
    with pytest.raises(RpcError) as exc:
        rpc.get_blocks(10, 1)
    assert exc.value.code == -32602


@pytest.mark.unit
@pytest.mark.parametrize('code', [-32004, -32007, -32009])
def test_missing_block_codes_mean_no_block(rpc, code):
    rpc.session.post.return_value = rpc_error(code, 'Slot was skipped')
    assert rpc.get_block(123) is None
    assert rpc.get_block_proposer(123) is None


@pytest.mark.unit
def test_other_get_block_errors_propagate(rpc):
    rpc.session.post.return_value = rpc_error(-32603, 'Internal error')
    with pytest.raises(RpcError):
        rpc.get_block(123)


@pytest.mark.unit
def test_block_proposer_is_fee_recipient(rpc):
    rpc.session.post.return_value = rpc_result({
        'blockhash': 'abc',
        'rewards': [
            {'pubkey': 'VoteAccount', 'lamports': 10, 'rewardType': 'Voting'},
            {'pubkey': 'LeaderIdentity', 'lamports': 5000, 'rewardType': 'Fee'},
        ],
    })
    assert rpc.get_block_proposer(42) == 'LeaderIdentity'
    params = rpc.session.post.call_args.kwargs['json']['params']
    assert params[1]['transactionDetails'] == 'none'
    assert params[1]['rewards'] is True


@pytest.mark.unit
def test_block_without_fee_reward_has_unknown_proposer(rpc):
    rpc.session.post.return_value = rpc_result({'blockhash': 'abc', 'rewards': []})
    assert rpc.get_block_proposer(42) is None


@pytest.mark.unit
def test_produced_slots(rpc):
    rpc.session.post.return_value = rpc_result([100, 101, 103])
    assert rpc.produced_slots(100, 103) == {100, 101, 103}

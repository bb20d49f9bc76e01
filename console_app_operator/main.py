# Copyright contributors to the Console Application Operator project. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import argparse
import logging
import time
from typing import Optional

from kubernetes import client

from console_app_operator.app.config import load_config
from console_app_operator.common import log
from console_app_operator.kube_store import (
    KubernetesCredentialStore,
    KubernetesObjectStore,
    load_kube_config,
)
from console_app_operator.metrics import register_metrics
from console_app_operator.observer import DEFAULT_OBSERVER
from console_app_operator.reconciler import ConsoleApplicationReconciler
from console_app_operator.result import ReconcileResult
from console_app_operator.store import CredentialStore, ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_WATCH_INTERVAL = 5


def run(args, store: Optional[ObjectStore] = None, credentials: Optional[CredentialStore] = None, sleep=time.sleep) -> ReconcileResult:
    config = load_config(args.config)
    if store is None or credentials is None:
        load_kube_config()
        api_client = client.ApiClient()
        store = store if store else KubernetesObjectStore(api_client)
        credentials = credentials if credentials else KubernetesCredentialStore(api_client)

    register_metrics(DEFAULT_OBSERVER)
    reconciler = ConsoleApplicationReconciler(store, credentials, config=config, observer=DEFAULT_OBSERVER)
    while True:
        result = reconciler.reconcile(args.namespace, args.name)
        logger.info(f"Pass finished for '{args.namespace}/{args.name}': requeue={result.requeue}, requeue_after={result.requeue_after}")
        if not args.watch or not result.requeue:
            return result
        interval = result.requeue_after.total_seconds() if result.requeue_after else DEFAULT_WATCH_INTERVAL
        sleep(interval)


def main():
    parser = argparse.ArgumentParser(description="ConsoleApplication Operator")
    parser.add_argument("-v", "--verbose", help="Display verbose output", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)

    parser_reconcile = subparsers.add_parser("reconcile", description="Run reconciliation for one ConsoleApplication", help="see `reconcile -h`")
    parser_reconcile.add_argument("-n", "--namespace", type=str, help="Namespace of the ConsoleApplication.", required=True)
    parser_reconcile.add_argument("--name", type=str, help="Name of the ConsoleApplication.", required=True)
    parser_reconcile.add_argument("-c", "--config", type=str, help="Path to the operator configuration.")
    parser_reconcile.add_argument(
        "--watch",
        action="store_true",
        help="Keep running passes, honoring the requested retry delay, until no retry is requested",
    )

    args = parser.parse_args()

    if args.verbose > 0:
        log.init(logging.DEBUG)
    else:
        log.init()

    if args.command == "reconcile":
        run(args)


if __name__ == "__main__":
    main()
